# pulse/repos/filters.py
LIKE_ESCAPE = "\\"


def contains_pattern(text: str) -> str:
    """Case-folded ``%text%`` with LIKE wildcards in ``text`` matched literally."""
    escaped = (
        text.lower()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"
