"""Test the HDF5 reader and writer."""

import os

import h5py
import numpy as np
import pytest
import yaml
from conftest import make_frame, make_global, make_mft, make_standalone, write_frames

from muskim.assoc import IdentityResolver
from muskim.build import MuonQA
from muskim.data import (
    MUON_DTYPE,
    Collision,
    GlobalMuon,
    MuonCov,
    MuonTable,
    StandaloneMuon,
)
from muskim.io import HDF5Reader, HDF5Writer, reader_factory, writer_factory
from muskim.version import __version__


@pytest.fixture(name="frames")
def fixture_frames():
    """Two processing passes."""
    frame_a = make_frame(
        [Collision(id=0, run_number=3, pos_z=1.5), Collision(id=1, run_number=3)],
        [
            make_standalone(0, collision_id=0),
            make_global(1, mch_id=0, mft_id=0, collision_id=1),
        ],
        [make_mft(0, collision_id=1)],
        track_assoc=[[0, 0], [1, 0], [1, 1]],
    )
    frame_b = make_frame([Collision(id=0, run_number=4, swt_alias=2)], [])
    return [frame_a, frame_b]


@pytest.fixture(name="input_file")
def fixture_input_file(tmp_path, frames):
    """HDF5 file holding the processing passes."""
    path = os.path.join(tmp_path, "AO2D_test.h5")
    write_frames(path, frames)
    return path


@pytest.fixture(name="result")
def fixture_result():
    """Products of one processing pass."""
    table = MuonTable()
    table.append(
        StandaloneMuon(collision_id=0, fwdtrack_id=2, pt=1.0, is_ambiguous=True),
        MuonCov(cov=np.arange(15, dtype=np.float64)),
    )
    table.append(
        GlobalMuon(collision_id=1, fwdtrack_id=2, mft_track_id=0, mch_track_id=2),
        MuonCov(),
    )
    ambiguous, same_mft = IdentityResolver().resolve(table)
    muons, covs = table.to_arrays()
    return {
        "name": "DF_0",
        "muons": muons,
        "muons_cov": covs,
        "ambiguous_muon_self_ids": ambiguous,
        "global_muon_self_ids": same_mft,
    }


class TestHDF5Reader:
    """Test the loading of processing passes."""

    def test_entries(self, input_file):
        reader = HDF5Reader(input_file)
        assert len(reader) == 2
        assert reader.entry_names == ["DF_0", "DF_1"]
        assert reader.get_entry_name(1) == "DF_1"
        assert reader.get_file_path(0) == input_file

    def test_load(self, input_file, frames):
        """Loaded objects are identical to the stored ones."""
        reader = HDF5Reader(input_file)
        frame = reader.get(0)
        assert frame.collisions == frames[0].collisions
        assert frame.fwd_tracks == frames[0].fwd_tracks
        assert frame.mft_tracks == frames[0].mft_tracks
        assert np.array_equal(frame.track_assoc, frames[0].track_assoc)
        assert frame.fwd_tracks[1].is_global
        assert frame.collisions[0].pos_z == 1.5

        frame = reader[1]
        assert frame.num_collisions == 1
        assert frame.num_fwd_tracks == 0
        assert frame.collisions[0].swt_alias == 2

    def test_iterate(self, input_file):
        frames = list(HDF5Reader(input_file))
        assert len(frames) == 2

    def test_numeric_order(self, tmp_path):
        """Passes are read in increasing number order, other groups ignored."""
        path = os.path.join(tmp_path, "order.h5")
        with h5py.File(path, "w") as out_file:
            for name in ["DF_10", "DF_2", "metadata"]:
                out_file.create_group(name)
        reader = HDF5Reader(path)
        assert reader.entry_names == ["DF_2", "DF_10"]
        frame = reader.get(0)
        assert frame.num_collisions == 0
        assert frame.track_assoc.shape == (0, 2)

    def test_structured_assoc(self, tmp_path):
        """The association table can be stored with named columns."""
        path = os.path.join(tmp_path, "assoc.h5")
        assoc = np.array(
            [(0, 4), (1, 5)], dtype=[("collision_id", np.int64), ("fwdtrack_id", np.int64)]
        )
        with h5py.File(path, "w") as out_file:
            out_file.create_group("DF_0").create_dataset("fwd_track_assoc", data=assoc)
        frame = HDF5Reader(path).get(0)
        assert frame.track_assoc.tolist() == [[0, 4], [1, 5]]

    def test_entry_selection(self, input_file):
        assert len(HDF5Reader(input_file, n_entry=1)) == 1
        reader = HDF5Reader(input_file, n_skip=1)
        assert reader.get_entry_name(0) == "DF_1"
        reader = HDF5Reader(input_file, entry_list=[1])
        assert reader.get_entry_name(0) == "DF_1"
        reader = HDF5Reader(input_file, skip_entry_list=[0])
        assert reader.get_entry_name(0) == "DF_1"

    def test_file_list(self, tmp_path, input_file):
        """Files can be listed in a text file."""
        list_path = os.path.join(tmp_path, "files.txt")
        with open(list_path, "w", encoding="utf-8") as f:
            f.write(f"{input_file}\n{input_file}\n")
        reader = HDF5Reader(list_path)
        assert len(reader) == 4
        assert reader.get_entry_name(2) == "DF_0"

    def test_missing_file(self, tmp_path):
        with pytest.raises(AssertionError):
            HDF5Reader(os.path.join(tmp_path, "missing_*.h5"))

    def test_factory(self, input_file):
        reader = reader_factory({"name": "hdf5", "file_keys": input_file})
        assert isinstance(reader, HDF5Reader)


class TestHDF5Writer:
    """Test the storage of the muon tables."""

    def test_write(self, tmp_path, result):
        path = os.path.join(tmp_path, "out.h5")
        writer = HDF5Writer(file_name=path)
        writer(result, cfg={"base": {"verbosity": "info"}})

        with h5py.File(path, "r") as in_file:
            assert in_file["info"].attrs["version"] == __version__
            cfg = yaml.safe_load(in_file["info"].attrs["cfg"])
            assert cfg["base"]["verbosity"] == "info"

            group = in_file["DF_0"]
            muons = group["muons"][()]
            covs = group["muons_cov"][()]
            assert muons.dtype.names == MUON_DTYPE.names
            assert len(muons) == len(covs) == 2
            assert np.all(covs[0] == np.arange(15))
            assert group["ambiguous_muon_self_ids"][0].tolist() == [1]
            assert group["ambiguous_muon_self_ids"][1].tolist() == [0]
            assert len(group["global_muon_self_ids"][1]) == 0

        table = MuonTable.from_arrays(muons, covs)
        assert isinstance(table[1], GlobalMuon)
        assert table[0].is_ambiguous

    def test_unsigned_mft_word(self, tmp_path, result):
        """The packed MFT word survives the storage with its highest bit."""
        word = 2**63 + 5
        result["muons"]["mft_cluster_sizes_and_track_flags"][1] = word
        path = os.path.join(tmp_path, "out.h5")
        HDF5Writer(file_name=path)(result)
        with h5py.File(path, "r") as in_file:
            muons = in_file["DF_0"]["muons"][()]
            covs = in_file["DF_0"]["muons_cov"][()]

        assert muons.dtype["mft_cluster_sizes_and_track_flags"] == np.uint64
        table = MuonTable.from_arrays(muons, covs)
        assert table[1].mft_cluster_sizes_and_track_flags == word

    def test_multiple_passes(self, tmp_path, result):
        path = os.path.join(tmp_path, "out.h5")
        writer = HDF5Writer(file_name=path)
        writer(result)
        writer({**result, "name": "DF_1"})
        with h5py.File(path, "r") as in_file:
            assert {"info", "DF_0", "DF_1"} <= set(in_file.keys())

    def test_count_mismatch(self, tmp_path, result):
        writer = HDF5Writer(file_name=os.path.join(tmp_path, "out.h5"))
        with pytest.raises(AssertionError):
            writer({**result, "muons_cov": result["muons_cov"][:1]})

    def test_existing_file(self, tmp_path, result):
        path = os.path.join(tmp_path, "out.h5")
        HDF5Writer(file_name=path)(result)
        with pytest.raises(FileExistsError):
            HDF5Writer(file_name=path)
        HDF5Writer(file_name=path, overwrite=True)

    def test_append(self, tmp_path, result):
        path = os.path.join(tmp_path, "out.h5")
        with pytest.raises(FileNotFoundError):
            HDF5Writer(file_name=path, append=True)
        HDF5Writer(file_name=path)(result)
        HDF5Writer(file_name=path, append=True)({**result, "name": "DF_1"})
        with h5py.File(path, "r") as in_file:
            assert "DF_0" in in_file and "DF_1" in in_file

    def test_prefix(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        writer = writer_factory({"name": "hdf5"}, prefix="AO2D")
        assert writer.file_name == "AO2D_muskim.h5"

    def test_qa(self, tmp_path):
        path = os.path.join(tmp_path, "out.h5")
        qa = MuonQA()
        qa.fill("MCHMID/hEtaPhi", 1.0, -3.0)
        writer = HDF5Writer(file_name=path)
        writer.store_qa(qa.to_dict())
        writer.store_qa(qa.to_dict())
        with h5py.File(path, "r") as in_file:
            hist = in_file["qa"]["MCHMID/hEtaPhi"]
            assert hist["counts"][()].sum() == 1
            assert hist["counts"].shape == (180, 60)
            assert len(hist["edges_0"]) == 181
            assert hist.attrs["title"].startswith("eta vs. phi")
