"""
Adapters layer: command line and run input loading
"""
