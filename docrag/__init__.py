"""docrag: document ingestion and retrieval-augmented question answering.

Uploaded PDF, text and Markdown files are extracted, chunked, embedded and
indexed in a vector store; questions are answered by retrieving the most
similar chunks and handing them to a generative model as context.
"""

__version__ = "0.1.0"
