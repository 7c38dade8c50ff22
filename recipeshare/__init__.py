"""Recipe sharing API: recipes, profiles and AI ingredient scaling."""
