"""Entity store repositories.

One module per entity family. Every function takes the GraphStore handle as
its first argument; nothing here holds connection state.
"""
from .organizations import (
    create_organization,
    get_organization,
    list_organizations,
    update_organization,
    delete_organization,
    get_organization_hierarchy,
)
from .shareholding import (
    create_shareholding,
    delete_shareholding,
    get_shareholders,
    get_subsidiaries,
    get_holdings_of,
)
from .relationships import (
    create_relationship_type,
    get_relationship_types,
    get_relationship_type_by_name,
    create_relationship,
    find_relationships_touching,
)
from .hypergraph import (
    create_hypergraph_node,
    get_hypergraph_node_by_entity,
    create_hyperedge,
    create_incidence,
    get_incident_rows,
)
from .agents import create_agent, get_agents_by_type, get_agent_by_entity
from .events import (
    create_event,
    get_event,
    get_event_timeline,
    get_causal_chain,
    create_state_transition,
    get_valid_transitions,
)
from .dynamics import (
    create_stock,
    get_stock,
    get_stocks_by_entity,
    create_flow,
    get_flows_by_stock,
    get_flows_touching,
    create_simulation_run,
    update_simulation_run,
    get_simulation_runs,
)
from .debts import (
    create_debt,
    get_debt_by_id,
    get_debts_by_organization,
    update_debt,
    delete_debt,
    get_payments,
)

__all__ = [
    # organizations
    'create_organization','get_organization','list_organizations','update_organization',
    'delete_organization','get_organization_hierarchy',
    # shareholding
    'create_shareholding','delete_shareholding','get_shareholders','get_subsidiaries','get_holdings_of',
    # multiplex relationships
    'create_relationship_type','get_relationship_types','get_relationship_type_by_name',
    'create_relationship','find_relationships_touching',
    # hypergraph
    'create_hypergraph_node','get_hypergraph_node_by_entity','create_hyperedge','create_incidence',
    'get_incident_rows',
    # agents
    'create_agent','get_agents_by_type','get_agent_by_entity',
    # events & state transitions
    'create_event','get_event','get_event_timeline','get_causal_chain',
    'create_state_transition','get_valid_transitions',
    # stocks, flows, simulation runs
    'create_stock','get_stock','get_stocks_by_entity','create_flow','get_flows_by_stock',
    'get_flows_touching','create_simulation_run','update_simulation_run','get_simulation_runs',
    # debts
    'create_debt','get_debt_by_id','get_debts_by_organization','update_debt','delete_debt','get_payments',
]
