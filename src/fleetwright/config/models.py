# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fleetwright/config/models.py

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MachineTemplate(BaseModel):
    """Base resource shape for a node-group. Extra keys pass through untouched."""

    model_config = ConfigDict(extra="allow", frozen=True)

    os_family: Optional[str] = None
    os_version_matches: Optional[str] = None
    os_64_bit: Optional[bool] = None
    inbound_ports: List[int] = Field(default_factory=list)


class NodeGroup(BaseModel):
    roles: List[str]                                   # as declared, aliases not expanded
    count: int = Field(ge=0)
    spec: Dict[str, Any] = Field(default_factory=dict)   # machine template overrides
    props: Dict[str, Any] = Field(default_factory=dict)  # property overrides

    @field_validator("spec")
    @classmethod
    def _spec_fits_template(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        # only the keys that were given, so the base template fills in the rest
        dumped = MachineTemplate.model_validate(v).model_dump()
        return {key: dumped[key] for key in v}


class ClusterSpec(BaseModel):
    ip_mode: Literal["private", "public"] = "private"
    node_groups: Dict[str, NodeGroup]
    base_machine_spec: MachineTemplate = MachineTemplate()
    base_props: Dict[str, Any] = Field(default_factory=dict)

    # Helper method
    def tags(self) -> List[str]:
        """Node-group tags in declaration order."""
        return list(self.node_groups)
