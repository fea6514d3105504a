"""Paris rent-control reference data and rent insights API."""
