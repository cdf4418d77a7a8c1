from collections import OrderedDict
from typing import Dict, Mapping, Sequence

from attrconfig.lookups import CatalogLookups

GROUP_EMPTY_MESSAGE = 'At least one attribute in "{name}" must be filled.'


def validate(
    selected_group_ids: Sequence[str],
    attribute_values: Mapping[str, str],
    lookups: CatalogLookups,
) -> Dict[str, str]:
    """
    Returns group name -> error for every selected group with no filled
    attribute. A group with no attributes at all is reported as well.
    """
    errors: Dict[str, str] = OrderedDict()
    for group_id in selected_group_ids:
        name = lookups.id_to_group_name(group_id)
        if name is None:
            continue
        filled = any(
            (attribute_values.get(attr.id) or "").strip()
            for attr in lookups.attributes_of_group(group_id)
        )
        if not filled:
            errors[name] = GROUP_EMPTY_MESSAGE.format(name=name)
    return errors
