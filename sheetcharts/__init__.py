"""Django project package for sheetcharts."""
