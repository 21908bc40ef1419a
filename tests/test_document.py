"""
Unit tests for the editable document.
"""

import pytest

from ielts_grader.content import ContentParser, EditableDocument
from ielts_grader.models import ContentNode, QuestionType, Section


@pytest.fixture
def document() -> EditableDocument:
    doc = EditableDocument()
    doc.insert_paragraph("Questions 1-2")
    doc.insert_question("blank", {"id": "a", "prompt": "Shape?", "answers": ["round"]})
    doc.insert_question("mcq", {"id": "b", "options": ["London", "Paris"], "correct_index": 1})
    return doc


class TestInsertion:
    """Tests for inserting blocks."""

    def test_questions_numbered_on_insert(self, document: EditableDocument) -> None:
        questions = document.questions()

        assert [(q.id, q.number, q.type) for q in questions] == [
            ("a", 1, QuestionType.BLANK),
            ("b", 2, QuestionType.MULTIPLE_CHOICE),
        ]
        assert questions[0].answer_spec == ["round"]
        assert questions[1].metadata == {"options": ["London", "Paris"]}

    def test_generated_id(self) -> None:
        doc = EditableDocument()

        node = doc.insert_question(QuestionType.ESSAY, {"prompt": "Describe the chart."})

        assert node.attrs["id"].startswith("question-")
        assert node.type == "essay"
        assert node.attrs["number"] == 1

    def test_insert_at_index(self, document: EditableDocument) -> None:
        node = document.insert_question("blank", {"answers": ["oak"]}, index=0)

        assert document.blocks[0] is node
        assert node.attrs["number"] == 3

    def test_inline_markers_take_numbers(self) -> None:
        doc = EditableDocument()
        doc.insert_paragraph("The table is [round].")

        node = doc.insert_question("blank", {"answers": ["oak"]})

        assert node.attrs["number"] == 2
        assert doc.questions()[0].answer_spec == ["round"]

    def test_duplicate_id(self, document: EditableDocument) -> None:
        with pytest.raises(ValueError, match="already used"):
            document.insert_question("blank", {"id": "a"})

    def test_unknown_type(self, document: EditableDocument) -> None:
        with pytest.raises(ValueError, match="Unknown question type"):
            document.insert_question("crossword")

    def test_invalid_start(self) -> None:
        with pytest.raises(ValueError):
            EditableDocument(start=0)


class TestRemoval:
    """Tests for removing questions."""

    def test_remove_fills_gap_on_next_insert(self, document: EditableDocument) -> None:
        assert document.remove_question("a")

        node = document.insert_question("blank", {"id": "c", "answers": ["pine"]})

        assert node.attrs["number"] == 1
        assert [(q.id, q.number) for q in document.questions()] == [("b", 2), ("c", 1)]

    def test_remove_missing(self, document: EditableDocument) -> None:
        assert not document.remove_question("ghost")
        assert len(document) == 3

    def test_remove_nested(self) -> None:
        root = ContentNode.model_validate(
            {
                "type": "doc",
                "content": [
                    {
                        "type": "section",
                        "content": [
                            {"type": "blank", "attrs": {"id": "inner", "answers": ["x"]}},
                            {"type": "paragraph", "content": [{"type": "text", "text": "kept"}]},
                        ],
                    }
                ],
            }
        )
        doc = EditableDocument.from_content(root)

        assert doc.remove_question("inner")

        assert doc.questions() == ()
        assert len(doc.blocks[0].content) == 1


class TestRenumber:
    """Tests for explicit renumbering."""

    def test_renumber_after_edits(self, document: EditableDocument) -> None:
        document.remove_question("a")
        document.insert_question("blank", {"id": "c", "answers": ["pine"]})

        next_number = document.renumber()

        assert next_number == 3
        assert [(q.id, q.number) for q in document.questions()] == [("b", 1), ("c", 2)]

    def test_renumber_with_start(self) -> None:
        doc = EditableDocument(start=11)
        doc.insert_question("matching", {"id": "m", "left": ["a", "b"], "right": ["x", "y"]})
        doc.insert_question("blank", {"id": "z", "answers": ["q"]})

        assert doc.renumber() == 14
        assert [(q.number, q.last_number) for q in doc.questions()] == [(11, 12), (13, 13)]

    def test_move_then_renumber(self, sample_tree: ContentNode) -> None:
        doc = EditableDocument.from_content(sample_tree)

        doc.move_block(0, -1)
        next_number = doc.renumber()

        assert doc.blocks[-1].type == "paragraph"
        assert doc.blocks[0].attrs["number"] == 1
        assert doc.blocks[1].attrs["number"] == 2
        assert next_number == 6

    def test_move_out_of_range(self, document: EditableDocument) -> None:
        with pytest.raises(IndexError):
            document.move_block(0, 5)


class TestContent:
    """Tests for the emitted tree."""

    def test_from_content_keeps_blocks(self, sample_tree: ContentNode) -> None:
        doc = EditableDocument.from_content(sample_tree)

        assert len(doc) == 4
        assert doc.to_content() == sample_tree

    def test_non_doc_root(self) -> None:
        node = ContentNode(type="paragraph", content=(ContentNode(type="text", text="Hi"),))

        doc = EditableDocument.from_content(node)

        assert doc.blocks == (node,)

    def test_stored_numbers_reported(self, sample_tree: ContentNode) -> None:
        doc = EditableDocument.from_content(sample_tree)

        numbers = {q.id: q.number for q in doc.questions()}

        assert numbers["q-mcq"] == 42

    def test_output_parses_the_same(self, document: EditableDocument) -> None:
        document.renumber()

        parsed = ContentParser().parse(document.to_content(), section=Section.LISTENING)

        assert [q.id for q in parsed.questions] == ["a", "b"]
        assert [q.number for q in parsed.questions] == [1, 2]
        assert all(q.section is Section.LISTENING for q in parsed.questions)
