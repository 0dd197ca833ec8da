"""Folio portfolio site builder.

Turns a directory of markdown documents with YAML front matter (work history,
projects, blog posts) into a static site using mistune, Pygments and Jinja2.

The main entry point is the CLI module, which provides commands for building
and checking the site, browsing the tag index and running a preview server.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
