"""Student records and generated feedback backend."""
