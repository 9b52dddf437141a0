"""
Wiener Paths -- Package Setup
Author: Jose Orlando Bobadilla Fuentes, CQF
"""

from setuptools import setup, find_packages

setup(
    name="wiener-paths",
    version="1.0.0",
    author="Jose Orlando Bobadilla Fuentes",
    description="Continuous-path Gaussian processes from covariance kernels: "
                "projective limits, Kolmogorov-Chentsov chaining, Brownian "
                "motion and Wiener measure.",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.24.0",
        "scipy>=1.10.0",
        "matplotlib>=3.7.0",
        "pandas>=2.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
)
