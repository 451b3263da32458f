"""Tokenization and word-vector document embeddings."""

from .tokenizer import Tokenizer, init_tokenizer
from .vectors import VectorStore, VectorTable, embed, embed_documents, load_vector_table

__all__ = [
    "Tokenizer",
    "init_tokenizer",
    "VectorStore",
    "VectorTable",
    "embed",
    "embed_documents",
    "load_vector_table",
]
