"""HTTP surface of the pipeline."""
