"""BazelBlog static site generator.

This package builds a small blog from Markdown posts and pages into a static
``public/`` directory. It also keeps a registry of known sites, runs a
development server with live reload, and upgrades older sites in place.

The main entry point is the CLI module, which provides commands for creating
sites and content, building, serving and upgrading.

Layout:
- content / extractors / renderers: load source files into Post and Page records.
- pipeline / templates / styles / feeds: write the output artifacts.
- build: orchestrates a full build.
- server: dev server, file watcher and live reload.
- upgrade / migrations: versioned site upgrades.
- config / registry / scaffold: plumbing used by the CLI.
"""

__all__ = ["__version__"]
__version__ = "1.4.2"
