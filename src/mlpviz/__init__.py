"""
mlpviz: a small multilayer perceptron trained by finite differences, with a
live training visualizer.
"""
