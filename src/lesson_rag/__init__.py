"""Lesson transcript RAG for the lesson assistant.

This package turns lesson transcripts into embedded chunks, stores them per
lesson, and answers learner questions grounded in the retrieved chunks.
"""
