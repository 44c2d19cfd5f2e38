from typing import List

from dep_updater.domain.models import DEPENDENCY_GROUPS, DependencyGroup, Manifest, UpdateOutcome


class ManifestMutator:
    """
    Rewrites the version specifier of one package across the dependency groups of a manifest.
    """

    @staticmethod
    def apply(manifest: Manifest, package_name: str, new_version: str) -> UpdateOutcome:
        """
        Sets `package_name` to `new_version` in every dependency group that declares it.

        The comparison is a plain string comparison: "^4.17.21" and "4.17.21" are
        different specifiers and the former gets replaced. Keys outside the matched
        entries are left as they are, in their original order.

        Args:
            manifest (Manifest): The manifest to update. Its content is modified in place.
            package_name (str): Name of the package, scoped names included.
            new_version (str): Specifier to write.

        Returns:
            UpdateOutcome: What was found and which groups were changed.
        """
        found = False
        updated_groups: List[DependencyGroup] = []

        for group in DEPENDENCY_GROUPS:
            entries = manifest.content.get(group.value)
            if not isinstance(entries, dict) or package_name not in entries:
                continue

            found = True
            if entries[package_name] == new_version:
                continue

            entries[package_name] = new_version
            updated_groups.append(group)

        updated = bool(updated_groups)
        return UpdateOutcome(
            found=found,
            updated=updated,
            already_up_to_date=found and not updated,
            updated_groups=updated_groups,
        )
