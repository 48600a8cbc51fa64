"""core/ -- Configuration and the domain error taxonomy shared by every layer."""
