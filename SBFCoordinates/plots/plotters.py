# -----------------------------
# File: SBFCoordinates/plots/plotters.py
# -----------------------------
"""Matplotlib-based plotting helpers for the frame locators.

Each plotter takes a finished locator and returns a matplotlib.Figure with
the sampled profiles and the matched transition positions marked.
"""
import matplotlib.pyplot as plt
import numpy as np


def _plot_profile(ax, profile, marks=(), title="", color="tab:blue"):
    """Draw one profile and vertical lines at ``marks``."""
    ax.plot(profile.positions, profile.values, color=color, lw=1)
    for m in marks:
        if m is not None:
            ax.axvline(m, color="red", ls="--", lw=1)
    ax.set_title(title, fontsize=10)
    ax.set_ylabel("HU")
    ax.grid(alpha=0.3)


class BottomPlotter:
    """
    Plotter for BottomLocator results.

    One row per attempted profile (centre, then the lateral retries) with the
    matched inner shell edge marked.

    Args:
        analyzer (BottomLocator): Locator after ``locate()``.
    """

    def __init__(self, analyzer):
        self.analyzer = analyzer

    def plot(self):
        """Generate the frame bottom figure."""
        profiles = self.analyzer.profiles
        if not profiles:
            raise ValueError("BottomLocator has no profiles; call locate() first.")

        fig, axes = plt.subplots(len(profiles), 1, figsize=(10, 3 * len(profiles)), squeeze=False)
        for ax, profile, found in zip(axes[:, 0], profiles, self.analyzer.matches):
            label = f"{found:.1f} mm" if found is not None else "not found"
            _plot_profile(ax, profile, [found], title=f"Vertical profile: bottom edge {label}")
            ax.set_xlabel("y (mm)")

        bottom = self.analyzer.bottom
        fig.suptitle(f"Frame bottom (Vrt 0): {bottom:.0f} mm" if bottom is not None else "Frame bottom not found")
        fig.tight_layout()
        return fig


class LateralPlotter:
    """
    Plotter for LateralLocator and VerticalDoubleChecker results.

    Left and right wall profiles side by side, with the inner wall marked.

    Args:
        analyzer (LateralLocator | VerticalDoubleChecker): Locator after use.
    """

    def __init__(self, analyzer):
        self.analyzer = analyzer

    def plot(self):
        """Generate the wall profile figure."""
        if not self.analyzer.profiles:
            raise ValueError("No wall profiles sampled yet.")

        fig, axes = plt.subplots(1, 2, figsize=(12, 4))
        for ax, side in zip(axes, ('left', 'right')):
            profile = self.analyzer.profiles.get(side)
            found   = self.analyzer.matches.get(side)
            if profile is None:
                ax.set_axis_off()
                continue
            label = f"{found:.1f} mm" if found is not None else "not found"
            _plot_profile(ax, profile, [found], title=f"{side.capitalize()} wall: {label}")
            ax.set_xlabel("x (mm)")

        bounds = self.analyzer.bounds
        name   = type(self.analyzer).__name__
        if bounds is not None:
            fig.suptitle(f"{name}: width {bounds.width:.1f} mm "
                         f"(expected {self.analyzer.expected_width:.0f} ± {self.analyzer.width_tolerance:.0f})")
        else:
            fig.suptitle(f"{name}: walls not found")
        fig.tight_layout()
        return fig


class LongitudinalPlotter:
    """
    Plotter for LongitudinalLocator results.

    Lower (decimeter ticks) and upper (index, diagonal, top) profiles for
    both sides of every sampled slice offset.

    Args:
        analyzer (LongitudinalLocator): Locator after ``locate()``.
    """

    def __init__(self, analyzer):
        self.analyzer = analyzer

    def plot(self):
        """Generate the fiducial profile figure."""
        offsets = list(self.analyzer.readings.keys())
        if not offsets:
            raise ValueError("LongitudinalLocator has no readings; call locate() first.")

        fig, axes = plt.subplots(len(offsets), 2, figsize=(12, 3.5 * len(offsets)), squeeze=False)
        colors = {'left': "tab:blue", 'right': "tab:orange"}
        for row, dz in enumerate(offsets):
            reading = self.analyzer.readings[dz]
            ax_low, ax_up = axes[row]
            for side in ('left', 'right'):
                lower = self.analyzer.profiles[f'{side}_lower_{dz}']
                upper = self.analyzer.profiles[f'{side}_upper_{dz}']
                marks = self.analyzer.matches.get(f'{side}_upper_{dz}') or ()
                ax_low.plot(lower.positions, lower.values, color=colors[side], lw=1, label=side)
                ax_up.plot(upper.positions, upper.values, color=colors[side], lw=1, label=side)
                for m in np.asarray(marks, dtype=float)[:4]:
                    ax_up.axvline(m, color=colors[side], ls="--", lw=0.8)

            ax_low.set_title(f"dz {dz} mm: ticks L={reading.left.ticks} R={reading.right.ticks}", fontsize=10)
            ax_up.set_title(f"dz {dz} mm: offsets L={reading.left.offset} R={reading.right.offset}", fontsize=10)
            for ax in (ax_low, ax_up):
                ax.set_xlabel("y (mm)")
                ax.set_ylabel("HU")
                ax.grid(alpha=0.3)
                ax.legend(fontsize=8)

        lng = self.analyzer.coordinate
        fig.suptitle(f"Lng: {lng:.1f} mm" if lng is not None else "Lng not found")
        fig.tight_layout()
        return fig
