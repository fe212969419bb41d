"""Application composition layer.

``BaseController`` wires a view, a notification sink, the fragment
dispatcher and request orchestrators into one per-view helper surface.
"""
