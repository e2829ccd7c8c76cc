def normalize_page_text(s: str) -> str:
    # Whitespace inside code blocks is significant, so only line endings are touched.
    s = s.lstrip("\ufeff")
    return s.replace("\r\n", "\n").replace("\r", "\n")
