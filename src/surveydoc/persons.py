"""
Per-person document variables.

Some templates (stock purchase agreements, director consents) are
rendered once per founder or director. These helpers pull the people out
of a repeated-group answer and overlay one person's details onto the
shared variable map.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from surveydoc.lists import capitalize_first
from surveydoc.model import SurveyResponse, find_response

UNKNOWN_PERSON = "Unknown"

# Person fields exposed per group; groups not listed get DEFAULT_PERSON_FIELDS
PERSON_FIELDS: Dict[str, Tuple[str, ...]] = {
    "founders": ("name", "address", "email", "cash"),
    "directors": ("name", "address", "email"),
}
DEFAULT_PERSON_FIELDS: Tuple[str, ...] = ("name", "address", "email")


def singular_of(group: str) -> str:
    """'founders' -> 'founder'"""
    return group[:-1] if group.endswith("s") else group


def _person_field(person: Mapping[str, Any], singular: str, field_name: str) -> str:
    value = person.get(field_name) or person.get(f"{singular}{capitalize_first(field_name)}")
    return str(value) if value else ""


def get_repeat_group_data(responses: Sequence[SurveyResponse], group: str) -> List[Dict[str, Any]]:
    """
    People recorded under a repeated-group answer.

    Each record gets a 'name', taken from 'name', then '{singular}Name',
    then 'Unknown'.

    Returns:
        List of person records (empty if the group was not answered)
    """
    response = find_response(list(responses), group)
    if response is None or not isinstance(response.value, list):
        return []

    singular = singular_of(group)
    people = []
    for item in response.value:
        if not isinstance(item, dict):
            continue
        name = item.get("name") or item.get(f"{singular}Name") or UNKNOWN_PERSON
        people.append({**item, "name": name})
    return people


def create_person_variables(
    base_variables: Mapping[str, Any],
    person: Mapping[str, Any],
    person_index: int,
    group: str,
    fields: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """
    Overlay one person's details onto a copy of the shared variables.

    For group="founders", person_index=0:
        FounderName, founderName, Founder1Name, FounderCash, ...

    Args:
        base_variables: Shared variable map (not modified)
        person: Person record from get_repeat_group_data
        person_index: 0-based position of the person in the group
        group: Repeated group name
        fields: Fields to expose (default: PERSON_FIELDS for the group)

    Returns:
        New variable map
    """
    singular = singular_of(group)
    singular_capitalized = capitalize_first(singular)
    position = person_index + 1

    variables = dict(base_variables)
    for field_name in fields or PERSON_FIELDS.get(group, DEFAULT_PERSON_FIELDS):
        value = _person_field(person, singular, field_name)
        field_capitalized = capitalize_first(field_name)
        variables[f"{singular_capitalized}{field_capitalized}"] = value
        variables[f"{singular}{field_capitalized}"] = value
        variables[f"{singular_capitalized}{position}{field_capitalized}"] = value
    return variables
