"""Tests for how the renter daemon wires its collaborators at startup."""

import json

from fastapi.testclient import TestClient

from renter import main
from renter.consensus_client import ConsensusClient, StaticChainState
from renter.host_registry import HostRegistry
from renter.hostdb_client import HostDirectoryClient
from renter.service_locator import get_rental_service


def _write_hosts(path, hosts):
    path.write_text(json.dumps([h.to_dict() for h in hosts]))
    return str(path)


def test_hosts_file_selects_local_registry(tmp_path, host_factory):
    hosts_file = _write_hosts(tmp_path / 'hosts.json', [host_factory('A')])

    directory = main.build_host_directory(hosts_file)

    assert isinstance(directory, HostRegistry)
    assert directory.random_host().host_id == 'A'


def test_remote_directory_by_default():
    directory = main.build_host_directory('')
    try:
        assert isinstance(directory, HostDirectoryClient)
        assert directory in main._clients
    finally:
        main._clients.remove(directory)
        directory.close()


def test_static_height_selects_fixed_chain_state():
    chain = main.build_chain_state('150')

    assert isinstance(chain, StaticChainState)
    assert chain.height() == 150


def test_consensus_client_by_default():
    chain = main.build_chain_state('')
    try:
        assert isinstance(chain, ConsensusClient)
    finally:
        main._clients.remove(chain)
        chain.close()


def test_startup_wires_rental_service(test_db, tmp_path, host_factory, monkeypatch):
    monkeypatch.setattr(main, 'HOSTS_FILE', _write_hosts(tmp_path / 'hosts.json', [host_factory('A')]))
    monkeypatch.setattr(main, 'STATIC_HEIGHT', '100')

    with TestClient(main.app) as client:
        service = get_rental_service()
        assert isinstance(service.proposer.directory, HostRegistry)
        assert service.proposer.chain.height() == 100
        assert client.get('/files').json() == {'files': []}

    assert main._clients == []
