"""Notetasks: pull task lines out of notes and file them in a task database.

Notetasks scans notes whose title carries a marker hashtag, picks out the
lines that look like tasks, assigns each one a category (fixed per
section, or chosen by a language model), files them with a todo provider
(Notion, Todoist) and then rewrites the source note so that only the
lines that were actually filed disappear.
"""

from __future__ import annotations

from .__version__ import __version__

__all__ = ["__version__"]
