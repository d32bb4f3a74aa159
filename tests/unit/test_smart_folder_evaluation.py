"""Tests for smart folder evaluation and the reducers registry."""
import pytest
import pytest_asyncio

from nodebox.core.exceptions import AggregationFormulaError, SmartFolderNodeNotFoundError
from nodebox.core.nodes import Aggregation, FileNode, FOLDER_MIMETYPE, SMART_FOLDER_MIMETYPE
from nodebox.core.services import REDUCERS, compute_aggregations
from nodebox.core.storage import NodeFile


@pytest_asyncio.fixture
async def folder(node_service):
    return await node_service.create({'title': 'Inbox', 'mimetype': FOLDER_MIMETYPE})


@pytest_asyncio.fixture
async def documents(node_service, folder):
    """Two PDFs and one text file."""
    files = [
        NodeFile('a.pdf', 'application/pdf', b'a' * 100),
        NodeFile('b.pdf', 'application/pdf', b'b' * 300),
        NodeFile('c.txt', 'text/plain', b'c' * 50),
    ]
    return [await node_service.create_file(f, {'parent': folder.uuid}) for f in files]


async def make_smart_folder(node_service, folder, aggregations=None):
    return await node_service.create({
        'title': 'PDFs',
        'parent': folder.uuid,
        'mimetype': SMART_FOLDER_MIMETYPE,
        'filters': [['mimetype', '==', 'application/pdf']],
        'aggregations': aggregations,
    })


class TestEvaluate:
    """Tests for NodeService.evaluate."""

    @pytest.mark.asyncio
    async def test_returns_matching_nodes(self, node_service, folder, documents):
        smart = await make_smart_folder(node_service, folder)

        evaluation = await node_service.evaluate(smart.uuid)

        assert sorted(n.title for n in evaluation.records) == ['a.pdf', 'b.pdf']
        assert evaluation.aggregations is None

    @pytest.mark.asyncio
    async def test_count_aggregation(self, node_service, folder, documents):
        smart = await make_smart_folder(node_service, folder, [
            {'title': 'How many', 'fieldName': 'size', 'formula': 'count'},
            {'title': 'Total size', 'fieldName': 'size', 'formula': 'sum'},
        ])

        evaluation = await node_service.evaluate(smart.uuid)

        values = {a.title: a.value for a in evaluation.aggregations}
        assert values == {'How many': 2, 'Total size': 400}

    @pytest.mark.asyncio
    async def test_bare_count_titled_after_formula(self, node_service, folder, documents):
        smart = await make_smart_folder(node_service, folder, [{'formula': 'count'}])

        evaluation = await node_service.evaluate(smart.uuid)

        assert [(a.title, a.value) for a in evaluation.aggregations] == [('count', 2)]

    @pytest.mark.asyncio
    async def test_unknown_formula_fails_whole_evaluation(self, node_service, folder, documents):
        smart = await make_smart_folder(node_service, folder, [
            {'title': 'Count', 'fieldName': 'size', 'formula': 'count'},
            {'title': 'Mode', 'fieldName': 'size', 'formula': 'mode'},
        ])

        with pytest.raises(AggregationFormulaError) as exc_info:
            await node_service.evaluate(smart.uuid)

        assert exc_info.value.formula == 'mode'

    @pytest.mark.asyncio
    async def test_extra_filters_narrow_result(self, node_service, folder, documents):
        smart = await make_smart_folder(node_service, folder)

        evaluation = await node_service.evaluate(smart.uuid, [['size', '>', 200]])

        assert [n.title for n in evaluation.records] == ['b.pdf']

    @pytest.mark.asyncio
    async def test_missing_smart_folder(self, node_service):
        with pytest.raises(SmartFolderNodeNotFoundError):
            await node_service.evaluate('missing')

    @pytest.mark.asyncio
    async def test_not_a_smart_folder(self, node_service, folder):
        with pytest.raises(SmartFolderNodeNotFoundError):
            await node_service.evaluate(folder.uuid)

    @pytest.mark.asyncio
    async def test_to_dict(self, node_service, folder, documents):
        smart = await make_smart_folder(node_service, folder, [
            {'title': 'Count', 'fieldName': 'size', 'formula': 'count'},
        ])

        data = (await node_service.evaluate(smart.uuid)).to_dict()

        assert len(data['records']) == 2
        assert data['aggregations'] == [{'title': 'Count', 'value': 2}]


class TestReducers:
    """Tests for each registered reducer."""

    @pytest.fixture
    def nodes(self):
        return [
            FileNode(uuid='1', title='a', size=10, properties={'score': 3}),
            FileNode(uuid='2', title='b', size=30, properties={'score': 1}),
            FileNode(uuid='3', title='c', size=20, properties={'score': True}),
        ]

    @pytest.mark.parametrize("formula,expected", [
        ('sum', 60),
        ('count', 3),
        ('avg', 20),
        ('med', 20),
        ('max', 30),
        ('min', 10),
    ])
    def test_reducer(self, nodes, formula, expected):
        assert REDUCERS[formula](nodes, 'size') == expected

    def test_booleans_are_not_numbers(self, nodes):
        assert REDUCERS['sum'](nodes, 'properties.score') == 4

    def test_empty_input(self):
        assert REDUCERS['sum']([], 'size') == 0
        assert REDUCERS['avg']([], 'size') == 0
        assert REDUCERS['max']([], 'size') is None

    def test_compute_checks_every_formula_first(self, nodes):
        aggregations = [Aggregation('ok', 'size', 'sum'), Aggregation('bad', 'size', 'nope')]

        with pytest.raises(AggregationFormulaError):
            compute_aggregations(nodes, aggregations)
