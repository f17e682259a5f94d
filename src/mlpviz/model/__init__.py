"""
Persistence of trained networks. No knowledge of the GUI.
"""
