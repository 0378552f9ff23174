"""Run LinearTV with `python -m lineartv`."""

from lineartv.main import main

if __name__ == "__main__":
    main()
