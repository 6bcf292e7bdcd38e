import pytest

from busdecode.linkedlist import LinkedList, LinkedListNode


class Item(LinkedListNode):
    __slots__ = ("value",)

    def __init__(self, value):
        super().__init__()
        self.value = value


def values(lst):
    return [node.value for node in lst]


@pytest.fixture
def abc():
    lst = LinkedList()
    items = [Item(v) for v in "abc"]
    for item in items:
        lst.append(item)
    return lst, items


def test_new_list_is_empty():
    lst = LinkedList()
    assert lst.is_empty()
    assert lst.first() is None
    assert lst.last() is None
    assert len(lst) == 0


def test_append_and_insert_order():
    lst = LinkedList()
    lst.append(Item(2))
    lst.append(Item(3))
    lst.insert(Item(1))
    assert values(lst) == [1, 2, 3]
    assert values(reversed(lst)) == [3, 2, 1]
    assert lst.first().value == 1
    assert lst.last().value == 3


def test_none_is_ignored():
    lst = LinkedList()
    lst.insert(None)
    lst.append(None)
    assert lst.is_empty()
    assert lst.dequeue(None) is None


def test_pop_first_and_last(abc):
    lst, items = abc
    assert lst.pop_first() is items[0]
    assert lst.pop_last() is items[2]
    assert values(lst) == ["b"]
    assert lst.pop_first() is items[1]
    assert lst.is_empty()
    assert lst.pop_first() is None
    assert lst.pop_last() is None
    assert items[0].next is None and items[2].prev is None


def test_dequeue_middle_and_ends(abc):
    lst, items = abc
    assert lst.dequeue(items[1]) is items[1]
    assert values(lst) == ["a", "c"]
    assert items[1].prev is None and items[1].next is None
    lst.dequeue(items[0])
    lst.dequeue(items[2])
    assert lst.is_empty()


def test_queue_before_and_after(abc):
    lst, items = abc
    lst.queue_before(Item("x"), items[1])
    lst.queue_after(Item("y"), items[1])
    lst.queue_before(Item("start"), items[0])
    lst.queue_after(Item("end"), items[2])
    assert values(lst) == ["start", "a", "x", "b", "y", "c", "end"]
    assert values(reversed(lst)) == list(reversed(values(lst)))


def test_queue_by_location(abc):
    lst, items = abc
    lst.queue(Item("before"), items[1], -1)
    lst.queue(Item("after"), items[1], 1)
    lst.queue(Item("never"), items[1], 0)
    assert values(lst) == ["a", "before", "b", "after", "c"]


def test_replace_keeps_links(abc):
    lst, items = abc
    new = Item("z")
    assert lst.replace(new, items[1]) is items[1]
    assert values(lst) == ["a", "z", "c"]
    assert values(reversed(lst)) == ["c", "z", "a"]
    end = Item("e")
    lst.replace(end, items[2])
    assert lst.last() is end


def test_swap(abc):
    lst, _ = abc
    other = LinkedList()
    other.append(Item(1))
    lst.swap(other)
    assert values(lst) == [1]
    assert values(other) == ["a", "b", "c"]


def test_extend_from(abc):
    lst, _ = abc
    other = LinkedList()
    other.append(Item("d"))
    other.append(Item("e"))
    lst.extend_from(other)
    assert values(lst) == ["a", "b", "c", "d", "e"]
    assert values(reversed(lst)) == ["e", "d", "c", "b", "a"]
    assert other.is_empty()


def test_extend_into_empty():
    lst = LinkedList()
    other = LinkedList()
    other.append(Item(1))
    lst.extend_from(other)
    assert values(lst) == [1]
    lst.extend_from(LinkedList())
    assert values(lst) == [1]


def test_contains_and_len(abc):
    lst, items = abc
    assert items[1] in lst
    assert Item("b") not in lst
    assert len(lst) == len(items)


def test_clear_unlinks(abc):
    lst, items = abc
    lst.clear()
    assert lst.is_empty()
    assert all(item.prev is None and item.next is None for item in items)