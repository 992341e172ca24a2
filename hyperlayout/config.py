"""Runtime configuration for the layout engine and the spatial index."""

from flax import struct


@struct.dataclass
class LayoutConfig:
    """Immutable parameters of BFS placement, pinned-node relaxation and the force layout.

    Radii and distances are hyperbolic unless stated otherwise. The config is
    passed explicitly to the layout functions, so several layouts with
    different parameters can coexist.
    """

    # Placement
    base_radius: float = 0.4  # Hyperbolic child distance at depth 0
    radius_per_depth: float = 0.15  # Added per BFS level
    spread_factor: float = 0.8  # Angular spread is spread_factor·pi·sqrt(n + 1), capped at 2pi
    weighted_spread: bool = False  # Size child sectors by subtree size instead of equally

    # Relaxation
    relax_iterations: int = 20
    relation_depth: int = 3  # Max ancestor/descendant hops that count as "related"
    grid_cell_size: float = 0.1  # Euclidean disk units
    attraction: float = 0.08
    repulsion: float = 0.04
    repulsion_radius: float = 0.3  # Hyperbolic radius of pin repulsion
    separation: float = 0.05  # Euclidean overlap threshold between movable nodes
    rest_distance: float = 0.8  # Related nodes are not pulled closer than this
    max_force: float = 0.1  # Euclidean cap on a single displacement

    # Force-directed layout
    edge_length: float = 0.8  # Rest length of parent/child springs
    spring_attraction: float = 0.3
    spring_repulsion: float = 0.5  # Inverse-square coefficient between all node pairs
    spring_cutoff: float = 5.0  # Pairs farther apart than this do not repel
    spring_damping: float = 0.9
    spring_max_step: float = 0.3  # Hyperbolic cap on a single move
    spring_iterations: int = 50
    spring_tolerance: float = 0.01  # Stop once the summed force magnitude drops to this

    def __post_init__(self):
        """Validate configuration after initialization."""
        positive = ("base_radius", "grid_cell_size", "repulsion_radius", "separation", "max_force")
        positive += ("spring_cutoff", "spring_damping", "spring_max_step")
        for name in positive:
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        non_negative = ("radius_per_depth", "spread_factor", "attraction", "repulsion", "rest_distance")
        non_negative += ("edge_length", "spring_attraction", "spring_repulsion", "spring_tolerance")
        for name in non_negative:
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if self.relax_iterations < 0:
            raise ValueError(f"relax_iterations must be non-negative, got {self.relax_iterations}")
        if self.spring_iterations < 0:
            raise ValueError(f"spring_iterations must be non-negative, got {self.spring_iterations}")
        if self.relation_depth < 1:
            raise ValueError(f"relation_depth must be at least 1, got {self.relation_depth}")
        if self.max_force >= 1.0:
            raise ValueError(f"max_force must stay inside the unit disk, got {self.max_force}")

    def child_radius(self, depth: int) -> float:
        """Hyperbolic distance between a node at BFS depth ``depth`` and its children."""
        return self.base_radius + self.radius_per_depth * depth

    def with_forces(
        self, attraction: float = None, repulsion: float = None, max_force: float = None
    ) -> "LayoutConfig":
        """Create a new config with different force constants."""
        updates = {}
        if attraction is not None:
            updates["attraction"] = attraction
        if repulsion is not None:
            updates["repulsion"] = repulsion
        if max_force is not None:
            updates["max_force"] = max_force
        return self.replace(**updates)

    def with_spacing(self, base_radius: float = None, radius_per_depth: float = None) -> "LayoutConfig":
        """Create a new config with different placement radii."""
        updates = {}
        if base_radius is not None:
            updates["base_radius"] = base_radius
        if radius_per_depth is not None:
            updates["radius_per_depth"] = radius_per_depth
        return self.replace(**updates)

    def with_springs(
        self, edge_length: float = None, iterations: int = None, tolerance: float = None
    ) -> "LayoutConfig":
        """Create a new config with a different spring length or stopping rule for the force layout."""
        updates = {}
        if edge_length is not None:
            updates["edge_length"] = edge_length
        if iterations is not None:
            updates["spring_iterations"] = iterations
        if tolerance is not None:
            updates["spring_tolerance"] = tolerance
        return self.replace(**updates)


@struct.dataclass
class IndexConfig:
    """Immutable parameters of the hyperbolic ball tree."""

    leaf_size: int = 8
    centroid_iterations: int = 3

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.leaf_size < 1:
            raise ValueError(f"leaf_size must be at least 1, got {self.leaf_size}")
        if self.centroid_iterations < 0:
            raise ValueError(f"centroid_iterations must be non-negative, got {self.centroid_iterations}")


# Common pre-configured instances
DEFAULT_LAYOUT_CONFIG = LayoutConfig()
DEFAULT_INDEX_CONFIG = IndexConfig()


def create_layout_config(spacing: str = None, **kwargs) -> LayoutConfig:
    """Create a layout config with optional overrides.

    Args:
        spacing: Preset placement spacing ('compact', 'wide', or None)
        **kwargs: Additional config parameters to override

    Returns:
        LayoutConfig instance
    """
    config = DEFAULT_LAYOUT_CONFIG

    if spacing == "compact":
        config = config.with_spacing(base_radius=0.3, radius_per_depth=0.1)
    elif spacing == "wide":
        config = config.with_spacing(base_radius=0.6, radius_per_depth=0.25)
    elif spacing is not None:
        raise ValueError(f"Unknown spacing preset: {spacing}")

    if kwargs:
        config = config.replace(**kwargs)

    return config
