"""Business logic: location resolution, rent insights and data import."""
