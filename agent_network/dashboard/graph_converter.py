"""Convert network snapshots to Cytoscape.js format."""

import json
from typing import Any, Dict, List

import networkx as nx

from agent_network.core.view_model import NetworkSnapshot


class CytoscapeConverter:
    """Convert agent network snapshots (via NetworkX) to Cytoscape.js format."""

    def snapshot_to_networkx(self, snapshot: NetworkSnapshot) -> nx.DiGraph:
        """Build a DiGraph carrying the snapshot's drawable state.

        Nodes the layout did not place get no ``x``/``y`` attributes.
        """
        graph = nx.DiGraph(mode=snapshot.mode.value)
        for node in snapshot.nodes:
            attrs: Dict[str, Any] = {
                "label": node.name,
                "color": node.color,
                "icon": node.icon,
                "route": node.route,
                "status": node.status.value,
                "selected": node.selected,
                "dragging": node.dragging,
            }
            if node.position is not None:
                attrs["x"] = node.position.x
                attrs["y"] = node.position.y
            graph.add_node(node.id, **attrs)
        for edge in snapshot.edges:
            graph.add_edge(edge.from_id, edge.to_id, is_active=edge.is_active)
        return graph

    def snapshot_to_cytoscape(self, snapshot: NetworkSnapshot) -> Dict[str, Any]:
        """Convert a snapshot to Cytoscape elements plus flow markers.

        Returns:
            Dict with 'nodes', 'edges', 'flows' and 'mode'
        """
        elements = self.networkx_to_cytoscape(self.snapshot_to_networkx(snapshot))
        elements["flows"] = [
            {
                "data": {
                    "id": f"flow-{flow.id}",
                    "source": flow.from_id,
                    "target": flow.to_id,
                    "label": flow.label,
                    "progress": flow.progress,
                },
                "position": {"x": flow.position.x, "y": flow.position.y},
                "classes": "flow",
            }
            for flow in snapshot.flows
        ]
        elements["mode"] = snapshot.mode.value
        return elements

    def networkx_to_cytoscape(self, graph: nx.DiGraph) -> Dict[str, List[Dict[str, Any]]]:
        """Convert NetworkX graph to Cytoscape.js format.

        Args:
            graph: NetworkX graph

        Returns:
            Dict with 'nodes' and 'edges' lists in Cytoscape format
        """
        elements = {
            "nodes": [],
            "edges": []
        }

        for node_id, attrs in graph.nodes(data=True):
            clean_attrs = self._clean_attributes(attrs)

            node_data = {
                "data": {
                    "id": str(node_id),
                    "label": clean_attrs.get("label", str(node_id)),
                    **clean_attrs
                },
                "classes": self._get_node_classes(clean_attrs)
            }

            if "x" in clean_attrs and "y" in clean_attrs:
                node_data["position"] = {
                    "x": clean_attrs["x"],
                    "y": clean_attrs["y"]
                }

            elements["nodes"].append(node_data)

        for source, target, attrs in graph.edges(data=True):
            clean_attrs = self._clean_attributes(attrs)

            edge_data = {
                "data": {
                    "id": f"{source}-{target}",
                    "source": str(source),
                    "target": str(target),
                    **clean_attrs
                },
                "classes": "active" if clean_attrs.get("is_active") else "default"
            }

            elements["edges"].append(edge_data)

        return elements

    def _clean_attributes(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        """Drop None values and flatten anything not JSON-scalar."""
        clean = {}
        for key, value in attrs.items():
            if value is None:
                continue

            if isinstance(value, (list, dict, tuple)):
                clean[key] = json.dumps(value)
            elif isinstance(value, (str, int, float, bool)):
                clean[key] = value
            else:
                clean[key] = str(value)

        return clean

    def _get_node_classes(self, attrs: Dict[str, Any]) -> str:
        """Space-separated CSS classes: status, then interaction flags."""
        classes = [attrs.get("status", "idle")]
        if attrs.get("selected"):
            classes.append("selected")
        if attrs.get("dragging"):
            classes.append("dragging")
        if "x" not in attrs:
            classes.append("unplaced")
        return " ".join(classes)
