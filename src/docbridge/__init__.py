"""docbridge -- document text extraction and LLM request templating."""
