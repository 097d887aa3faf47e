"""Service layer: business operations over repositories, one transaction per operation."""
