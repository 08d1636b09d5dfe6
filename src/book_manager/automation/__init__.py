"""Automation components for unattended operation.

Submodules:
    watcher -- watchdog observer feeding a queue, translated to FsEvents,
               and the single worker loop that dispatches them in order
"""
