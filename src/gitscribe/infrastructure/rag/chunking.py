"""Splitting source files into overlapping chunks for embedding."""

# Split points, most meaningful first.
BOUNDARIES = ("\n\ndef ", "\n\nclass ", "\nfunction ", "\nexport ", "\n\n", "\n")


def chunk_text(text: str, chunk_size: int, overlap: int) -> list[str]:
    """Overlapping chunks of at most chunk_size characters.

    Each cut moves back to the newline that opens the latest boundary in the
    second half of the window, so chunks tend to end between functions or
    paragraphs. Chunks are stripped and empty ones dropped.
    """
    if not text or chunk_size <= 0:
        return []
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError("overlap must be in [0, chunk_size)")

    chunks: list[str] = []
    start = 0
    while start < len(text):
        end = start + chunk_size
        if end >= len(text):
            tail = text[start:].strip()
            if tail:
                chunks.append(tail)
            break
        window_start = start + chunk_size // 2
        for boundary in BOUNDARIES:
            idx = text.rfind(boundary, window_start, end)
            if idx != -1:
                end = idx + 1
                break
        piece = text[start:end].strip()
        if piece:
            chunks.append(piece)
        start = max(end - overlap, start + 1)
    return chunks
