"""Module entry point for the s3-manifest command."""
from .cli import main


if __name__ == "__main__":
    main()
