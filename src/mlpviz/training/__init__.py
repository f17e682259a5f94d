"""
Training: the finite-difference trainer, the training loop and the snapshots
it shares with the renderer. Should NOT import PySide6.
"""
