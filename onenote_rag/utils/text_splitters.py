from typing import List
import re

PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
SENTENCE_TERMINATORS = re.compile(r"[.!?]+")

def split_into_chunks(text: str, max_chunk_size: int) -> List[str]:
    """
    Splits text into chunks of at most max_chunk_size characters.

    Paragraphs (separated by blank lines) that fit are kept whole. Longer paragraphs
    are split on sentence terminators and the sentences are packed greedily; every
    chunk produced this way ends with a period.

    A sentence of max_chunk_size characters or more is kept as one oversized chunk.
    The appended period counts too, so such a chunk is at least max_chunk_size + 1
    characters long.
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")

    chunks = []
    for paragraph in PARAGRAPH_BREAK.split(text):
        if not paragraph.strip():
            continue

        if len(paragraph) <= max_chunk_size:
            chunks.append(paragraph.strip())
            continue

        current_chunk = ""
        for sentence in SENTENCE_TERMINATORS.split(paragraph):
            trimmed_sentence = sentence.strip()
            if not trimmed_sentence:
                continue

            # +2 for the ". " joining sentences
            if len(current_chunk) + len(trimmed_sentence) + 2 <= max_chunk_size:
                current_chunk += (". " if current_chunk else "") + trimmed_sentence
            else:
                if current_chunk:
                    chunks.append(current_chunk + ".")
                current_chunk = trimmed_sentence

        if current_chunk:
            chunks.append(current_chunk + ".")

    return [chunk for chunk in chunks if chunk.strip()]


# Example usage (for testing)
if __name__ == "__main__":
    text = "This is a sentence. This is another sentence.\n\nThis is a new paragraph. It has more text."

    print("Paragraph/sentence chunking:")
    for i, chunk in enumerate(split_into_chunks(text, max_chunk_size=30)):
        print(f"Chunk {i+1} (len {len(chunk)}): '{chunk}'")
