"""
Media download, storage and sideload helpers.
"""
