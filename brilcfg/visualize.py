"""Draw the CFGs of a program side by side with networkx and matplotlib."""
import matplotlib
matplotlib.use("Agg")  # only ever writes PNG files
import matplotlib.pyplot as plt
import networkx as nx

from brilcfg.build_cfg import Cfg


def cfg_to_graph(cfg: Cfg) -> nx.DiGraph:
    G = nx.DiGraph()
    for block in cfg.blocks:
        G.add_node(block.label, size=len(block))
    for block in cfg.blocks:
        for succ in cfg.successors.get(block.label, []):
            G.add_edge(block.label, succ)
    return G


def visualize_all(cfgs, out_png="cfg.png"):
    n = len(cfgs)
    if n == 0:
        return None

    fig, axes = plt.subplots(1, n, figsize=(5 * n, 5))
    if n == 1:
        axes = [axes]

    for ax, cfg in zip(axes, cfgs):
        G = cfg_to_graph(cfg)
        pos = nx.spring_layout(G, seed=0)
        font_size = max(7, 12 - len(G) // 8)
        # Entry block gets its own colour
        colors = ["#84b6e3" if node == cfg.entry else "#e3848d" for node in G.nodes]
        nx.draw(
            G,
            pos,
            with_labels=True,
            arrows=True,
            node_size=1200,
            node_color=colors,
            font_size=font_size,
            ax=ax,
        )
        ax.set_title(f"{cfg.function.name} ({len(cfg.blocks)} blocks)", fontsize=font_size + 2)

    plt.tight_layout()
    fig.savefig(out_png)
    plt.close(fig)
    return out_png

