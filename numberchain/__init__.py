# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Number Chain - Collaborative Arithmetic Discussion Service

A user posts a starting number; other users reply to the post or to any
existing reply by applying an arithmetic operation. Replies form a tree
rooted at the post.

Layout:

    numberchain/
    ├── core/           settings, lifecycle, exception hierarchy
    ├── data/           SQLAlchemy models, database handle, repositories
    ├── discussion/     calculator, tree builder, discussion service
    ├── gateway/        FastAPI app, token codec, refresh ledger, session
    └── observability/  structured logging and audit trail

Quick Start:
    numberchain db init
    numberchain serve --reload
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
