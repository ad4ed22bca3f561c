"""PDF layout: page manager, tables, section renderers and the footer pass."""
