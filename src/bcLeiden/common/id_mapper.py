"""
ID mapping utilities for the bcLeiden library.

Graph vertices carry arbitrary integer identifiers, while NetworkIt graphs
and numpy arrays want consecutive indices (0, 1, 2, ...). ``IDMapper`` keeps
the bidirectional mapping between the two.
"""

from typing import Dict, Iterable, List


class IDMapper:
    """
    Bidirectional mapping between vertex IDs and internal indices.

    Attributes
    ----------
    original_to_internal : Dict[int, int]
        Maps vertex IDs to internal indices (0, 1, 2, ...)
    internal_to_original : Dict[int, int]
        Maps internal indices back to vertex IDs

    Examples
    --------
    >>> mapper = IDMapper.from_vertices([10, 3, 7])
    >>> mapper.get_internal(3)
    0
    >>> mapper.get_original(2)
    10
    """

    def __init__(self) -> None:
        self.original_to_internal: Dict[int, int] = {}
        self.internal_to_original: Dict[int, int] = {}

    @classmethod
    def from_vertices(cls, vertices: Iterable[int]) -> "IDMapper":
        """
        Build a mapper assigning indices in ascending vertex ID order.

        Parameters
        ----------
        vertices : Iterable[int]
            Vertex identifiers; duplicates are ignored

        Returns
        -------
        IDMapper
            Mapper with consecutive internal indices
        """
        mapper = cls()
        for internal_id, vertex in enumerate(sorted(set(vertices))):
            mapper.add_mapping(vertex, internal_id)
        return mapper

    def add_mapping(self, original_id: int, internal_id: int) -> None:
        """
        Add a single mapping.

        Raises
        ------
        ValueError
            If either side is already mapped to something else
        """
        existing_internal = self.original_to_internal.get(original_id)
        if existing_internal is not None and existing_internal != internal_id:
            raise ValueError(
                f"Vertex {original_id} already mapped to internal ID {existing_internal}"
            )
        existing_original = self.internal_to_original.get(internal_id)
        if existing_original is not None and existing_original != original_id:
            raise ValueError(
                f"Internal ID {internal_id} already mapped to vertex {existing_original}"
            )

        self.original_to_internal[original_id] = internal_id
        self.internal_to_original[internal_id] = original_id

    def get_internal(self, original_id: int) -> int:
        try:
            return self.original_to_internal[original_id]
        except KeyError:
            raise KeyError(f"Vertex '{original_id}' not found in mapping")

    def get_original(self, internal_id: int) -> int:
        if not isinstance(internal_id, int):
            raise TypeError(f"Internal ID must be integer, got {type(internal_id)}")

        try:
            return self.internal_to_original[internal_id]
        except KeyError:
            raise KeyError(f"Internal ID {internal_id} not found in mapping")

    def get_internal_batch(self, original_ids: Iterable[int]) -> List[int]:
        return [self.get_internal(original_id) for original_id in original_ids]

    def get_original_batch(self, internal_ids: Iterable[int]) -> List[int]:
        return [self.get_original(internal_id) for internal_id in internal_ids]

    def size(self) -> int:
        return len(self.original_to_internal)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, original_id: object) -> bool:
        return original_id in self.original_to_internal

    def __repr__(self) -> str:
        return f"IDMapper(size={self.size()})"
