"""Text Transformation (TT): chunked translation and UX-writing requests."""
