"""Package entry point for ``python -m lyric_palette``.

Delegates straight to the CLI's main().
"""

from lyric_palette.cli import main

if __name__ == "__main__":
    main()
