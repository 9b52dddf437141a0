"""
Model components, leaf to root: kernels and Gram matrices, Gaussian
projective family, projective limit, covering numbers, Kolmogorov
certificates, chaining engine, assemblers, independence checker and
Wiener measure.
"""
