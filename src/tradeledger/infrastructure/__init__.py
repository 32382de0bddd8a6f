"""Infrastructure layer: storage backends."""
