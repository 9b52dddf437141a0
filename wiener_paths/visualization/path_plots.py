"""
Publication-quality visualizations for the continuous-path construction.

Figures generated:
    01_sample_paths.png          - Brownian sample paths with +/- 2 sqrt(t) band
    02_dyadic_refinement.png     - One path at successive chaining levels
    03_holder_ratio.png          - Increment ratio |dY| / dt^beta vs resolution
    04_moment_law.png            - Empirical vs (2n-1)!! |dt|^n even moments
    05_increment_correlation.png - Correlation matrix of disjoint increments
    06_chaining_levels.png       - Interpolant corrections vs bad-level threshold
    07_reflection_principle.png  - Running maximum tail vs 2(1 - Phi(a/sqrt T))

Author: Jose Orlando Bobadilla Fuentes, CQF
"""
import os
import numpy as np
import matplotlib
matplotlib.use("Agg")           # headless / Cloud Shell safe
import matplotlib.pyplot as plt

from wiener_paths.models.certificates import gaussian_even_moment
from wiener_paths.models.wiener_measure import reflection_probability

NAVY = "#1a1a2e"; TEAL = "#16697a"; CORAL = "#db6400"
GOLD = "#c5a880"; SLATE = "#4a4e69"
COLORS = [NAVY, TEAL, CORAL, GOLD, SLATE, "#2d6a4f", "#e07a5f"]

plt.rcParams.update({
    "figure.facecolor": "white", "axes.facecolor": "white",
    "axes.grid": True, "grid.alpha": 0.3, "grid.linestyle": "--",
    "savefig.facecolor": "white",
})

def _wm(fig):
    fig.text(0.99, 0.01, "J. Bobadilla | CQF", fontsize=7,
             color="gray", alpha=0.5, ha="right", va="bottom")

def _sv(fig, proj, name):
    out = os.path.join(proj, "outputs", "figures")
    os.makedirs(out, exist_ok=True)
    path = os.path.join(out, name)
    fig.savefig(path); plt.close(fig); return path


def plot_sample_paths(bm, proj, n_paths=5, levels=10):
    fig, ax = plt.subplots(figsize=(12, 6))
    mod = bm.paths(n_paths, levels)
    for i in range(mod.n_paths):
        ax.plot(mod.times, mod.values[i], lw=0.7, color=COLORS[i % len(COLORS)],
                label=rf"$\omega$ = {mod.omegas[i]}")
    band = 2 * np.sqrt(mod.times)
    ax.fill_between(mod.times, -band, band, alpha=0.08, color=NAVY,
                    label=r"$\pm 2\sqrt{t}$")
    ax.set_xlabel("t"); ax.set_ylabel("W(t)")
    ax.set_title(f"Brownian Sample Paths (spacing $2^{{-{levels}}}$)")
    ax.legend(fontsize=8, ncol=2)
    _wm(fig)
    return _sv(fig, proj, "01_sample_paths.png")


def plot_dyadic_refinement(bm, proj, omega=0, level_list=(2, 4, 6, 10), window=1.0):
    fig, ax = plt.subplots(figsize=(12, 6))
    for i, lvl in enumerate(level_list):
        mod = bm.paths([omega], lvl)
        keep = mod.times <= window
        ax.plot(mod.times[keep], mod.values[0, keep], color=COLORS[i], lw=1.2,
                marker="o" if lvl <= 4 else None, ms=3, label=f"level {lvl}")
    ax.set_xlabel("t"); ax.set_ylabel("Interpolant $L_n(t)$")
    ax.set_title("Dyadic Chaining: Nested Piecewise-Linear Interpolants")
    ax.legend()
    _wm(fig)
    return _sv(fig, proj, "02_dyadic_refinement.png")


def plot_holder_ratio(bm, proj, n_paths=20, levels=(4, 6, 8, 10, 12),
                      betas=(0.3, 0.45, 0.55, 0.7)):
    fig, ax = plt.subplots(figsize=(11, 6))
    mods = [bm.paths(n_paths, lvl) for lvl in levels]
    for i, beta in enumerate(betas):
        # Uncertified exponents too: divergence above 1/2 is the point.
        ratios = [np.median(m.increment_ratio(beta)) for m in mods]
        ax.semilogy(levels, ratios, marker="o", color=COLORS[i], lw=2,
                    label=rf"$\beta$ = {beta}")
    ax.set_xlabel("Chaining level n"); ax.set_ylabel(r"median max $|\Delta W| / \Delta t^\beta$")
    ax.set_title(r"Hoelder Ratio: bounded for $\beta < 1/2$, divergent above")
    ax.legend()
    _wm(fig)
    return _sv(fig, proj, "03_holder_ratio.png")


def plot_moment_law(bm, proj, n_paths=20000, levels=6, lags=(0.25, 0.5, 1.0, 2.0),
                    orders=(1, 2, 3, 4)):
    fig, ax = plt.subplots(figsize=(11, 6))
    mod = bm.paths(n_paths, levels)
    s0 = 1.0
    for i, n in enumerate(orders):
        emp = [np.mean((mod.values_at(s0 + h)[:, 0] - mod.values_at(s0)[:, 0])**(2*n))
               for h in lags]
        exact = [gaussian_even_moment(h, n) for h in lags]
        ax.loglog(lags, exact, color=COLORS[i], lw=2, label=f"(2n-1)!! h^n, n={n}")
        ax.loglog(lags, emp, "o", color=COLORS[i], ms=7)
    ax.set_xlabel("Lag h = |s - t|"); ax.set_ylabel(r"$E|W_s - W_t|^{2n}$")
    ax.set_title("Even Moments of Brownian Increments (dots: Monte Carlo)")
    ax.legend()
    _wm(fig)
    return _sv(fig, proj, "04_moment_law.png")


def plot_increment_correlation(bm, proj, n_paths=5000, levels=4,
                               times=(0.0, 1.0, 2.5, 4.0, 6.0, 9.0)):
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 6))
    mod = bm.paths(n_paths, levels)
    Y = mod.values_at(np.array(times))
    inc = np.diff(Y, axis=1)
    emp = np.corrcoef(inc.T)
    im = ax1.imshow(emp, cmap="RdBu_r", vmin=-1, vmax=1)
    ax1.set_title("Empirical Correlation of Increments")
    fig.colorbar(im, ax=ax1, shrink=0.8)

    S = bm.law.restrict(np.array(times)).cov
    A = np.diff(np.eye(len(times)), axis=0)
    cov_inc = A @ S @ A.T
    im2 = ax2.imshow(cov_inc, cmap="viridis")
    ax2.set_title(r"Exact Increment Covariance $A K A^T$")
    fig.colorbar(im2, ax=ax2, shrink=0.8)
    fig.tight_layout()
    _wm(fig)
    return _sv(fig, proj, "05_increment_correlation.png")


def plot_chaining_levels(bm, proj, n_paths=200, levels=12, beta=0.25):
    fig, ax = plt.subplots(figsize=(11, 6))
    mod = bm.paths(n_paths, levels)
    summary = mod.level_summary(beta)
    ax.semilogy(summary.index, summary["max_correction"], marker="o", color=TEAL, lw=2,
                label=r"max $\|L_n - L_{n-1}\|_\infty$")
    ax.semilogy(summary.index, summary["mean_correction"], marker="s", color=GOLD, lw=2,
                label="mean correction")
    ax.semilogy(summary.index, summary["threshold"], color=CORAL, ls="--", lw=2,
                label=rf"threshold $s_n^\beta$, $\beta$={beta}")
    ax.set_xlabel("Chaining level n"); ax.set_ylabel("Sup-norm change")
    ax.set_title("Borel-Cantelli Bookkeeping: Bad Levels Die Out")
    ax.legend()
    _wm(fig)
    return _sv(fig, proj, "06_chaining_levels.png")


def plot_reflection_principle(bm, proj, n_paths=4000, levels=8, horizon=1.0):
    fig, ax = plt.subplots(figsize=(11, 6))
    mod = bm.paths(n_paths, levels)
    keep = mod.times <= horizon
    running_max = mod.values[:, keep].max(axis=1)
    a = np.linspace(0, 3, 31)
    emp = [(running_max >= x).mean() for x in a]
    exact = [reflection_probability(x, horizon) for x in a]
    ax.plot(a, exact, color=CORAL, lw=2.5, label=r"$2(1 - \Phi(a/\sqrt{T}))$")
    ax.plot(a, emp, "o", color=TEAL, ms=5, label="Monte Carlo (grid maximum)")
    ax.set_xlabel("Level a"); ax.set_ylabel(r"$P(\max_{[0,T]} W \geq a)$")
    ax.set_title("Wiener Measure: Reflection Principle")
    ax.legend()
    _wm(fig)
    return _sv(fig, proj, "07_reflection_principle.png")


def generate_all_figures(bm, project_dir=None):
    if project_dir is None:
        project_dir = os.path.join(os.path.dirname(__file__), "..", "..")
    print("  Generating continuous-path figures...")
    files = [
        plot_sample_paths(bm, project_dir),
        plot_dyadic_refinement(bm, project_dir),
        plot_holder_ratio(bm, project_dir),
        plot_moment_law(bm, project_dir),
        plot_increment_correlation(bm, project_dir),
        plot_chaining_levels(bm, project_dir),
        plot_reflection_principle(bm, project_dir),
    ]
    print(f"  DONE: {len(files)} figures saved to outputs/figures/")
    return files
