"""
Main entry point for running llm_doc_commenter as a module.

This allows the package to be run with: python -m llm_doc_commenter
"""

from .src.cli import main

if __name__ == '__main__':
    main()
