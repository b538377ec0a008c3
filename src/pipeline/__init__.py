"""Fixed pipeline template: steps, attributes and input resources."""
