"""
Domain services: storage, embeddings, ranking and search.
"""
