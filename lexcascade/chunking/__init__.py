from .chunker import Chunker, ImageBatch, TextChunk, estimate_tokens

__all__ = ["Chunker", "ImageBatch", "TextChunk", "estimate_tokens"]
