"""FastAPI Backend-For-Frontend for branchdocs."""
