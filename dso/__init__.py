"""DSO - Dataset Optimizer: batch LLM rewriting of conversational datasets."""

__version__ = "0.1.0"
