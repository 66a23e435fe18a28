import matplotlib.pyplot as plt
from matplotlib.patches import Circle, Rectangle


def plot_detection(buffer, detection, title="Dial detection", save=None):
    fig, ax = plt.subplots(figsize=(6, 6), facecolor="white")
    ax.imshow(buffer.data, origin="upper")
    cx, cy = detection.center()
    r = detection.radius()
    colour = "orange" if detection.low_confidence else "red"
    ax.add_patch(Circle((cx, cy), r, fill=False, lw=2, color=colour,
                        label=f"dial r≈{r:.1f} (score {detection.result.score:.1f})"))
    x0, y0, x1, y1 = detection.crop_box()
    ax.add_patch(Rectangle((x0, y0), x1 - x0 + 1, y1 - y0 + 1, fill=False, lw=1,
                           ls="--", color="dodgerblue", label="crop"))
    ax.scatter([cx], [cy], s=20, c=colour)
    ax.set_aspect("equal", adjustable="box")
    ax.axis("off")
    ax.legend(frameon=False, loc="best")
    ax.set_title(title)
    fig.tight_layout()
    if save:
        fig.savefig(save, dpi=120, bbox_inches="tight", facecolor="white")
        plt.close(fig)
    else:
        plt.show()
    return fig
