"""Django project package for the Sprout SEL backend."""
