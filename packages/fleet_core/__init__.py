"""Fleet core: component packaging and the live service graph."""
