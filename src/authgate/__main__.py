"""Entry point for 'python -m authgate' command."""

from authgate.cli import main

if __name__ == "__main__":
    main()
