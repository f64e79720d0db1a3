"""topology graph and summary of a finished definition pass"""

import logging

import networkx as nx
from jinja2 import Environment, PackageLoader, Template, TemplateNotFound, select_autoescape

from hubspoke.controller import TopologyController
from hubspoke.models import HubspokeError

_LOGGER = logging.getLogger(__name__)

J2SUFFIX = ".jinja2"
SUMMARY_TEMPLATE = "summary"


def hub_node(region: str) -> str:
    return f"hub:{region}"


def spoke_node(region: str, name: str) -> str:
    return f"spoke:{region}:{name}"


def topology_graph(controller: TopologyController) -> nx.DiGraph:
    """controller -> hubs -> spokes, all attributes are strings so the
    graph can be written as GraphML"""
    graph = nx.DiGraph(name=controller.scope.path)
    root = controller.scope.path
    graph.add_node(
        root,
        kind="controller",
        account=str(controller.account),
        region=str(controller.region),
        sink=controller.flow_log_sink.name,
    )
    for hub in controller.hubs.values():
        hnode = hub_node(hub.region)
        graph.add_node(
            hnode,
            kind="hub",
            name=hub.name,
            account=hub.account,
            region=hub.region,
            cidr=hub.cidr.cidr,
        )
        graph.add_edge(root, hnode)
        for spoke in hub:
            snode = spoke_node(spoke.region, spoke.name)
            graph.add_node(
                snode,
                kind="spoke",
                name=spoke.name,
                account=spoke.account,
                region=spoke.region,
                cidr=spoke.cidr.cidr,
            )
            graph.add_edge(hnode, snode)
    if not nx.is_arborescence(graph):
        raise HubspokeError("topology is not a tree rooted at the controller")
    return graph


def write_graphml(controller: TopologyController, filename: str):
    nx.write_graphml(topology_graph(controller), filename)
    _LOGGER.warning("GraphML written to %s", filename)


def load_template(name: str = SUMMARY_TEMPLATE) -> Template:
    env = Environment(loader=PackageLoader("hubspoke"), autoescape=select_autoescape())
    try:
        return env.get_template(f"{name}{J2SUFFIX}")
    except TemplateNotFound as exc:
        raise HubspokeError(f"template does not exist: {name}") from exc


def render_summary(controller: TopologyController) -> str:
    """render a plain text summary of the topology"""
    graph = topology_graph(controller)
    allocations = sorted(
        controller.address_manager.allocations(), key=lambda a: int(a[2].network_address)
    )
    return load_template().render(
        controller=controller,
        hubs=sorted(controller.hubs.values(), key=lambda h: h.region),
        allocations=allocations,
        depth=max(nx.shortest_path_length(graph, controller.scope.path).values()),
    )
