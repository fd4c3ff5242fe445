"""Cross-references between selected muons which share an identity.

Two groupings are resolved once the muon table of a pass is complete:
- muons built from the same forward track paired with different collisions
  (ambiguous tracks)
- global muons of the same collision which share the same MFT segment

Both are computed in two passes: the group of every record is established
first, then each record is given the other members of its group.
"""

import numpy as np

__all__ = ["IdentityResolver"]


class IdentityResolver:
    """Resolves the cross-reference lists of a complete muon table."""

    @staticmethod
    def group(keys):
        """Cross-references records which share the same key.

        Parameters
        ----------
        keys : List[object]
            Grouping key of each record (`None` excludes the record)

        Returns
        -------
        List[np.ndarray]
            For each record, the indexes of the other records of its group,
            in table order
        """
        groups = {}
        for i, key in enumerate(keys):
            if key is not None:
                groups.setdefault(key, []).append(i)

        self_ids = []
        for i, key in enumerate(keys):
            if key is None:
                self_ids.append(np.empty(0, dtype=np.int64))
                continue

            members = np.asarray(groups[key], dtype=np.int64)
            self_ids.append(members[members != i])

        return self_ids

    def ambiguous_self_ids(self, table):
        """Cross-references the muons built from the same forward track.

        Parameters
        ----------
        table : MuonTable
            Complete muon table of a pass

        Returns
        -------
        List[np.ndarray]
            For each muon, the indexes of the other muons built from the same
            forward track
        """
        return self.group([muon.fwdtrack_id for muon in table])

    def same_mft_self_ids(self, table):
        """Cross-references the global muons of a collision which share their
        MFT segment. Standalone muons have no cross-reference.

        Parameters
        ----------
        table : MuonTable
            Complete muon table of a pass

        Returns
        -------
        List[np.ndarray]
            For each muon, the indexes of the other global muons of the same
            collision built on the same MFT track
        """
        keys = [
            (muon.mft_track_id, muon.collision_id) if muon.is_global else None
            for muon in table
        ]

        return self.group(keys)

    def resolve(self, table):
        """Computes both cross-reference lists.

        Parameters
        ----------
        table : MuonTable
            Complete muon table of a pass

        Returns
        -------
        List[np.ndarray]
            Ambiguous track cross-references
        List[np.ndarray]
            Shared MFT segment cross-references
        """
        return self.ambiguous_self_ids(table), self.same_mft_self_ids(table)
