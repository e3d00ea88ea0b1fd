"""Prompting package.

Contains the instruction templates for text-generation calls
(`prompt_builder`) and the prompt enhancement stage (`enhancer`).
"""
