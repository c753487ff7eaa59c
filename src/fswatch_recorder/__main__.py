"""
Allow running as: python -m fswatch_recorder ROOT_DIR DB_PATH
"""
from .cli import main

if __name__ == "__main__":
    main()
