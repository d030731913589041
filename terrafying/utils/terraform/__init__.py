import re

_UNSAFE_CHARS = re.compile(r"[.\s/?]")


def tf_safe(s: str) -> str:
    """Sanitize a string so it can be used as part of a terraform record name"""
    res = _UNSAFE_CHARS.sub("-", s)
    res = res.replace("*", "star")
    if res and res[0].isdigit():
        res = "_" + res
    return res
