"""Food truck marketplace API."""
