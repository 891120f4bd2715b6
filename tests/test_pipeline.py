"""Tests for orthoedit.pipeline and orthoedit.io modules."""

import pandas as pd
import pytest
from orthoedit.config import AnalysisConfig
from orthoedit.core.conservation import ConservationCall
from orthoedit.crispr.repair import SilentMutationStrategy
from orthoedit.io.output import (
    generate_summary_report,
    write_alignment_fasta,
    write_batch_summary_tsv,
    write_designs_tsv,
)
from orthoedit.io.variant_key import load_variant_key
from orthoedit.pipeline import VariantPipeline
from orthoedit.utils.sequence import translate


GUIDE = "GATTACAGATTACAGATTAC"

# Codon 13 is CAG (Gln) inside a guide whose PAM is codon 18 (AGG)
YEAST_CDS = "A" * 31 + GUIDE + "AGG" + "A" * 66
YEAST_PROTEIN = translate(YEAST_CDS)

# Human ortholog with one extra residue (W13); human Q14 maps to yeast Q13
HUMAN_PROTEIN = YEAST_PROTEIN[:12] + "W" + YEAST_PROTEIN[12:]


@pytest.fixture
def pipeline():
    return VariantPipeline(HUMAN_PROTEIN, YEAST_PROTEIN, yeast_cds=YEAST_CDS)


class TestVariantPipeline:
    """Test single-variant analysis."""

    def test_protein_fixture(self):
        """Test the yeast protein used below."""
        assert YEAST_PROTEIN == "K" * 10 + "RLQITDYR" + "K" * 22

    def test_full_analysis(self, pipeline):
        """Test align, map and design for a conserved residue."""
        result = pipeline.analyze("p.Gln14Glu")

        assert result.succeeded
        assert result.call == ConservationCall.IDENTICAL
        assert result.mapping.yeast_residue == 13
        assert result.yeast_change == "Q13E"
        assert result.n_sites == 1
        assert len(result.designs) == 1
        assert result.designs[0].strategy == SilentMutationStrategy.PAM_SILENT
        assert result.warnings == []

    def test_variant_id_defaults_to_change(self, pipeline):
        """Test result labelling."""
        assert pipeline.analyze("Q14E").variant_id == "Q14E"
        assert pipeline.analyze("Q14E", variant_id="v1").variant_id == "v1"

    def test_reference_mismatch_warns(self, pipeline):
        """Test that a wrong reference residue is reported but analysed."""
        result = pipeline.analyze("R14E")

        assert result.mapping.reference_mismatch
        assert any("reference" in w for w in result.warnings)
        assert len(result.designs) == 1

    def test_out_of_bounds(self, pipeline):
        """Test a residue beyond the human sequence."""
        result = pipeline.analyze("K500E")

        assert result.call == ConservationCall.NOT_APPLICABLE
        assert result.designs == []
        assert result.warnings

    def test_gap_in_yeast(self, pipeline):
        """Test a human residue with no yeast counterpart."""
        result = pipeline.analyze("W13A")

        assert result.call == ConservationCall.GAP
        assert result.yeast_change is None
        assert result.designs == []

    def test_unsupported_target(self, pipeline):
        """Test a target residue with no codons."""
        result = pipeline.analyze("Q14B")

        assert result.designs == []
        assert any("No codons" in w for w in result.warnings)

    def test_without_cds(self):
        """Test mapping only when no coding sequence is given."""
        result = VariantPipeline(HUMAN_PROTEIN, YEAST_PROTEIN).analyze("Q14E")

        assert result.yeast_change == "Q13E"
        assert result.n_sites == 0
        assert result.designs == []

    def test_invalid_change_raises(self, pipeline):
        """Test unparseable input to analyze()."""
        with pytest.raises(ValueError):
            pipeline.analyze("not a variant")

    def test_alignment_computed_once(self, pipeline):
        """Test that the alignment is reused."""
        assert pipeline.alignment is pipeline.alignment

    def test_from_config_requires_proteins(self):
        """Test that both proteins are needed."""
        with pytest.raises(ValueError):
            VariantPipeline.from_config(AnalysisConfig(human_protein=HUMAN_PROTEIN))


class TestBatch:
    """Test multi-variant analysis."""

    def test_partial_success(self, pipeline):
        """Test that one bad variant does not stop the others."""
        results = pipeline.analyze_many({
            'good': 'Q14E',
            'bad': 'nonsense',
            'far': 'K500E',
        })

        assert [r.variant_id for r in results] == ['good', 'bad', 'far']
        assert results[0].designs
        assert not results[1].succeeded
        assert results[1].error
        assert results[2].succeeded
        assert results[2].call == ConservationCall.NOT_APPLICABLE

    def test_list_input(self, pipeline):
        """Test plain change strings."""
        results = pipeline.analyze_many(['Q14E', 'L12F'])
        assert [r.variant_id for r in results] == ['Q14E', 'L12F']


class TestOutput:
    """Test result writers."""

    def test_write_designs_tsv(self, pipeline, tmp_path):
        """Test the designs table."""
        result = pipeline.analyze("Q14E")
        path = write_designs_tsv(result.designs, tmp_path / "designs.tsv")

        df = pd.read_csv(path, sep='\t')
        assert len(df) == 1
        assert df.loc[0, 'strategy'] == 'PAM_SILENT'
        assert df.loc[0, 'site_position'] == 32
        assert df.loc[0, 'guide_with_pam'] == GUIDE + "AGG"

    def test_write_empty_designs(self, tmp_path):
        """Test that an empty table still has a header."""
        path = write_designs_tsv([], tmp_path / "empty.tsv")
        assert path.read_text().startswith("rank\tsite_position")

    def test_write_batch_summary(self, pipeline, tmp_path):
        """Test the per-variant summary."""
        results = pipeline.analyze_many({'good': 'Q14E', 'bad': 'nonsense'})
        path = write_batch_summary_tsv(results, tmp_path / "summary.tsv")

        df = pd.read_csv(path, sep='\t', keep_default_na=False)
        assert list(df['variant_id']) == ['good', 'bad']
        assert df.loc[0, 'yeast_change'] == 'Q13E'
        assert df.loc[0, 'n_designs'] == 1
        assert df.loc[1, 'conservation'] == 'N/A'
        assert df.loc[1, 'error'] != ''

    def test_write_alignment_fasta(self, pipeline, tmp_path):
        """Test aligned FASTA output."""
        path = write_alignment_fasta(pipeline.alignment, tmp_path / "aln.fasta")
        lines = path.read_text().splitlines()

        assert lines[0] == ">human"
        assert lines[1] == HUMAN_PROTEIN
        assert lines[2] == ">yeast"
        assert lines[3] == YEAST_PROTEIN[:12] + "-" + YEAST_PROTEIN[12:]

    def test_summary_report(self, pipeline, tmp_path):
        """Test the markdown report."""
        result = pipeline.analyze("Q14E")
        path = generate_summary_report(result, pipeline.alignment, tmp_path / "report.md")
        text = path.read_text()

        assert "# OrthoEdit Report: Q14E" in text
        assert "Identical" in text
        assert "PAM_SILENT" in text


class TestVariantKey:
    """Test variant key loading."""

    def test_load(self, tmp_path):
        """Test required and extra columns."""
        key = tmp_path / "variants.tsv"
        key.write_text(
            "variant_id\tprotein_change\tsource\n"
            "v1\tR114W\tclinvar\n"
            "v2\tp.Gly12Asp\t\n"
        )
        entries = load_variant_key(key)

        assert [e.variant_id for e in entries] == ['v1', 'v2']
        assert entries[1].protein_change == 'p.Gly12Asp'
        assert entries[0].metadata == {'source': 'clinvar'}
        assert entries[1].metadata == {}

    def test_missing_column(self, tmp_path):
        """Test that required columns are enforced."""
        key = tmp_path / "variants.tsv"
        key.write_text("variant_id\tchange\nv1\tR114W\n")

        with pytest.raises(ValueError):
            load_variant_key(key)

    def test_duplicate_ids(self, tmp_path):
        """Test that variant ids must be unique."""
        key = tmp_path / "variants.tsv"
        key.write_text("variant_id\tprotein_change\nv1\tR114W\nv1\tG12D\n")

        with pytest.raises(ValueError):
            load_variant_key(key)

    def test_invalid_change_kept(self, tmp_path):
        """Test that unparseable changes are loaded for per-variant reporting."""
        key = tmp_path / "variants.tsv"
        key.write_text("variant_id\tprotein_change\nv1\tbogus\n")

        entries = load_variant_key(key)
        assert entries[0].validate()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
