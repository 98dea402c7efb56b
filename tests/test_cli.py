import os
from pathlib import Path

import pytest

from gitstore import data
from gitstore.cli import main

HELLO_OID = '3b18e512dba79e4c8300dd08aeb37f8e728b8dad'

def run(cmd):
    return main(cmd.split())

@pytest.fixture
def workdir(tmp_path, monkeypatch, identity_env):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv('GIT_AUTHOR_NAME', 'Alice')
    monkeypatch.setenv('GIT_AUTHOR_EMAIL', 'alice@example.com')
    assert data.GIT_DIR == '.git'
    return tmp_path

def test_init(workdir, capsys):
    assert run('init') == 0
    assert (workdir / '.git' / 'objects').is_dir()
    assert (workdir / '.git' / 'HEAD').read_text() == 'ref: refs/heads/main\n'
    assert 'Initialized empty gitstore repository' in capsys.readouterr().out
    assert run('init') == 0

def test_hash_object_and_cat_file(workdir, capsys):
    run('init')
    (workdir / 'hello.txt').write_text('hello world\n')
    capsys.readouterr()

    assert run('hash-object hello.txt') == 0
    assert capsys.readouterr().out == HELLO_OID + '\n'
    assert not (workdir / '.git' / 'objects' / '55').exists()

    assert run('hash-object -w hello.txt') == 0
    assert capsys.readouterr().out == HELLO_OID + '\n'

    assert run('cat-file -p 3b18e') == 0
    assert capsys.readouterr().out == 'hello world\n'
    assert run('cat-file -t 3b18e') == 0
    assert capsys.readouterr().out == 'blob\n'
    assert run('cat-file -s 3b18e') == 0
    assert capsys.readouterr().out == '12\n'

def test_hash_object_unknown_type(workdir):
    run('init')
    (workdir / 'a').write_text('a')
    assert run('hash-object -t tag a') == 1

def test_cat_file_errors(workdir):
    run('init')
    assert run('cat-file -p 55') == 1
    assert run('cat-file -p 3b18e') == 1

def test_write_tree_and_ls_tree(workdir, capsys):
    run('init')
    (workdir / 'hello.txt').write_text('hello world\n')
    (workdir / 'lib').mkdir()
    (workdir / 'lib' / 'a.py').write_text('a = 1\n')
    capsys.readouterr()

    assert run('write-tree') == 0
    tree = capsys.readouterr().out.strip()
    assert len(tree) == 40

    assert run(f'ls-tree --name-only {tree}') == 0
    assert capsys.readouterr().out == 'hello.txt\nlib\n'

    assert run(f'ls-tree {tree}') == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == f'100644 blob {HELLO_OID}\thello.txt'
    assert lines[1].startswith('040000 tree ')

    assert run(f'cat-file -p {tree}') == 0
    assert capsys.readouterr().out.splitlines()[0] == lines[0]

def test_ls_tree_on_a_blob(workdir):
    run('init')
    (workdir / 'hello.txt').write_text('hello world\n')
    run('hash-object -w hello.txt')
    assert run(f'ls-tree {HELLO_OID}') == 1

def test_write_tree_empty(workdir):
    run('init')
    assert run('write-tree') == 1

def test_commit_tree(workdir, capsys):
    run('init')
    capsys.readouterr()
    (workdir / 'hello.txt').write_text('hello world\n')
    run('write-tree')
    tree = capsys.readouterr().out.strip()

    assert main(['commit-tree', tree[:8], '-m', 'first commit']) == 0
    first = capsys.readouterr().out.strip()
    assert main(['commit-tree', tree, '-p', first[:8], '-m', 'second']) == 0
    second = capsys.readouterr().out.strip()

    assert run(f'cat-file -p {second}') == 0
    text = capsys.readouterr().out
    assert text.startswith(f'tree {tree}\nparent {first}\nauthor Alice <alice@example.com> ')
    assert text.endswith('\n\nsecond\n')

def test_commit_updates_branch(workdir, capsys):
    run('init')
    capsys.readouterr()
    (workdir / 'hello.txt').write_text('hello world\n')
    assert main(['commit', '-m', 'first']) == 0
    first = capsys.readouterr().out.strip()
    assert Path('.git/refs/heads/main').read_text().strip() == first

    (workdir / 'more.txt').write_text('more\n')
    assert main(['commit', '-m', 'second']) == 0
    second = capsys.readouterr().out.strip()
    assert Path('.git/refs/heads/main').read_text().strip() == second
    assert run(f'cat-file -p {second}') == 0
    assert f'parent {first}\n' in capsys.readouterr().out

def test_config(workdir, capsys):
    run('init')
    assert run('config user.name Bob') == 0
    assert run('config user.name') == 0
    assert capsys.readouterr().out.endswith('Bob\n')
    assert run('config core.editor vim') == 1

def test_not_a_repository(workdir):
    (workdir / 'hello.txt').write_text('hello world\n')
    assert run('hash-object -w hello.txt') == 1
    assert not os.path.exists('.git')
