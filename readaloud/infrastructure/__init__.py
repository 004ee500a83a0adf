"""Infrastructure layer: adapters for text generation, speech and text utilities."""
