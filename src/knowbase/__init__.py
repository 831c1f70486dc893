"""knowbase: chunk, embed and retrieve document passages by cosine similarity."""
