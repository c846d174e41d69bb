"""Matrix-factorization similar-movies recommender.

Core idea:
- Train a Funk-SVD style MF model (global mean + user/item biases + latent factors)
  by plain per-sample SGD on observed (userId, movieId, rating) triples
- Unit-normalize the learned item factors
- Answer "movies similar to X" by cosine similarity in the latent space
"""
