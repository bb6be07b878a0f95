"""Column-level diff between two table layouts."""

import logging
from typing import Optional

from ..config import settings
from .alignment import AlignedPair, align_sequences, pair_gaps
from .headers import header_similarity, normalize_header
from .models import ColumnDiff, ColumnSlot, RenamedColumn

logger = logging.getLogger(__name__)

HEADER_COMPARISON_CONFIDENCE = 0.9
FALLBACK_CONFIDENCE = 0.5


class ColumnDiffComputer:
    """
    Detects added, deleted and renamed columns.

    Headers are aligned in order on their normalised text. Inside each run
    of unmatched headers, a deleted and an added header that are similar
    enough are treated as one renamed column.
    """

    def __init__(
        self,
        ignore_case: Optional[bool] = None,
        detect_renames: Optional[bool] = None,
        rename_threshold: Optional[float] = None,
    ):
        self.ignore_case = settings.header_ignore_case if ignore_case is None else ignore_case
        self.detect_renames = (
            settings.detect_column_renames if detect_renames is None else detect_renames
        )
        self.rename_threshold = (
            settings.rename_similarity_threshold if rename_threshold is None else rename_threshold
        )

    def compute(self, old_headers: list[str], new_headers: list[str]) -> ColumnDiff:
        """
        Compare two header rows.

        Args:
            old_headers: Header cells of the old layout
            new_headers: Header cells of the new layout

        Returns:
            ColumnDiff with ``detection_method`` "header-comparison", or
            "no-change" when every column was kept under the same name
        """
        old_keys = [normalize_header(h, ignore_case=self.ignore_case) for h in old_headers]
        new_keys = [normalize_header(h, ignore_case=self.ignore_case) for h in new_headers]
        alignment = align_sequences(old_keys, new_keys)

        warnings = []
        for ambiguity in alignment.ambiguities:
            message = (
                f"Duplicate header '{old_headers[ambiguity.old_index]}': matched old column "
                f"{ambiguity.old_index} to new column {ambiguity.new_index}, "
                f"{len(ambiguity.alternatives)} equally good alternative(s)"
            )
            logger.warning(message)
            warnings.append(message)

        pairs: list[AlignedPair] = alignment.pairs
        renamed: dict[tuple[int, int], float] = {}
        if self.detect_renames:
            def can_pair(old_index: int, new_index: int) -> bool:
                similarity = header_similarity(old_headers[old_index], new_headers[new_index])
                if similarity >= self.rename_threshold:
                    renamed[(old_index, new_index)] = similarity
                    return True
                return False

            pairs, paired = pair_gaps(alignment, can_pair)
            renamed = {key: value for key, value in renamed.items() if key in paired}

        layout: list[ColumnSlot] = []
        mapping: dict[int, int] = {}
        added: list[int] = []
        deleted: list[int] = []
        renamed_columns: list[RenamedColumn] = []

        for pair in pairs:
            if pair.status == "kept":
                mapping[pair.old_index] = pair.new_index
                layout.append(
                    ColumnSlot(
                        status="kept",
                        old_index=pair.old_index,
                        new_index=pair.new_index,
                        header=new_headers[pair.new_index],
                        old_header=old_headers[pair.old_index],
                    )
                )
                similarity = renamed.get((pair.old_index, pair.new_index))
                if similarity is not None:
                    renamed_columns.append(
                        RenamedColumn(
                            old_index=pair.old_index,
                            new_index=pair.new_index,
                            old_header=old_headers[pair.old_index],
                            new_header=new_headers[pair.new_index],
                            similarity=similarity,
                        )
                    )
            elif pair.status == "deleted":
                deleted.append(pair.old_index)
                layout.append(
                    ColumnSlot(
                        status="deleted",
                        old_index=pair.old_index,
                        header=old_headers[pair.old_index],
                        old_header=old_headers[pair.old_index],
                    )
                )
            else:
                added.append(pair.new_index)
                layout.append(
                    ColumnSlot(
                        status="added",
                        new_index=pair.new_index,
                        header=new_headers[pair.new_index],
                    )
                )

        if added or deleted or renamed_columns:
            method = "header-comparison"
            confidence = HEADER_COMPARISON_CONFIDENCE
            if renamed_columns:
                confidence = min(confidence, min(r.similarity for r in renamed_columns))
        else:
            method = "no-change"
            confidence = 1.0

        logger.debug(
            f"Column diff {len(old_headers)} -> {len(new_headers)}: "
            f"added={added} deleted={deleted} renamed={len(renamed_columns)}"
        )

        return ColumnDiff(
            old_column_count=len(old_headers),
            new_column_count=len(new_headers),
            added_columns=sorted(added),
            deleted_columns=sorted(deleted),
            old_headers=list(old_headers),
            new_headers=list(new_headers),
            column_mapping=mapping,
            renamed_columns=renamed_columns,
            layout=layout,
            detection_method=method,
            confidence=confidence,
            warnings=warnings,
        )

    def compute_from_counts(
        self,
        old_count: int,
        new_count: int,
        new_headers: Optional[list[str]] = None,
    ) -> ColumnDiff:
        """
        Column diff for an old table without a header line.

        Only the column counts are known, so columns are assumed to have been
        added or removed at the end of the table.
        """
        new_headers = list(new_headers or [])

        def new_header(index: int) -> str:
            return new_headers[index] if index < len(new_headers) else f"Column {index + 1}"

        common = min(old_count, new_count)
        layout = [
            ColumnSlot(status="kept", old_index=i, new_index=i, header=new_header(i))
            for i in range(common)
        ]
        deleted = list(range(new_count, old_count))
        added = list(range(old_count, new_count))
        layout.extend(
            ColumnSlot(status="deleted", old_index=i, header=f"Column {i + 1}") for i in deleted
        )
        layout.extend(ColumnSlot(status="added", new_index=i, header=new_header(i)) for i in added)

        if old_count == new_count:
            method, confidence, warnings = "no-change", 1.0, []
        else:
            method, confidence = "fallback-end-columns", FALLBACK_CONFIDENCE
            warnings = [
                f"No old header line; assuming columns changed at the end "
                f"({old_count} -> {new_count})"
            ]
            logger.warning(warnings[0])

        return ColumnDiff(
            old_column_count=old_count,
            new_column_count=new_count,
            added_columns=added,
            deleted_columns=deleted,
            new_headers=new_headers,
            column_mapping={i: i for i in range(common)},
            layout=layout,
            detection_method=method,
            confidence=confidence,
            warnings=warnings,
        )
