"""
Content Processors Package

Services that turn catalog data into retrievable material.

Modules:
--------
- chunker: Product chunking (identification, combined and description chunks)
- embedder: Embedding generation using sentence-transformers
- text_search: Lexical relevance scoring and snippet extraction
"""
