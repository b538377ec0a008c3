"""Configuration: typed settings and worker command resolution."""
