"""HTTP surface for lyric_palette.

WHY: Lets renderers outside Python use caption lookups and palette
extraction without a local install.

HOW: models.py holds the pydantic schemas; app.py wires them to the
captions and color packages. Run with the lyric-palette-api script.
"""
