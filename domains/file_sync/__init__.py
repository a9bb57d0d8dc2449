"""
File Sync Domain

Watches directories and runs registered sync processes on every change:
- events.py - Classified change events and their origin
- origin_tracker.py - Attributes self-written files to the process that wrote them
- dispatcher.py - Offers each event to every registered process
- coalescer.py - Merges bursts of notifications for the same path
- watchers/ - watchdog integration and run loop
- processors/ - Bundled sync processes

Writes made by sync processes land in watched directories again; the origin
tracker marks the resulting notifications as internal so processes can
ignore their own output instead of re-triggering themselves.
"""

__all__ = ["events", "origin_tracker", "dispatcher", "coalescer", "processors"]
